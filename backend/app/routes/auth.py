# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/app/routes/auth.py
"""
Authentication API routes

- POST /register: create customer + user and return a session token
- POST /login: exchange email/password for a session token
- GET /profile: current user's profile
- POST /logout: revoke the presented token
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..validation import ServiceError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Register a new account.

    Body: {email, password, rut, name?, phone_number?, address?}
    """
    data = request.get_json(silent=True) or {}
    try:
        result = auth_service.register(data)
        return jsonify(result), 201
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Registration failed"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue session token.

    Token must be included as "Authorization: Bearer <token>" for
    protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    try:
        result = auth_service.login(email, password)
        return jsonify(result), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Login failed"}), 500


@auth_bp.get("/profile")
@require_auth
def profile_route():
    try:
        return jsonify(auth_service.get_profile(g.current_user.id)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke current session token. Repeating the call is harmless."""
    try:
        result = auth_service.logout(g.token, g.current_user.id)
        return jsonify(result), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log out")
        return jsonify({"error": "Logout failed"}), 500
