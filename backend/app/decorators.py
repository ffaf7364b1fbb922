# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import User
from .services import token_service


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.token: The raw token (Bearer prefix stripped)
    - g.token_claims: Decoded TokenClaims

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User no longer exists or is deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        claims = token_service.validate_token(token)
        if not claims:
            return jsonify({"error": "Invalid or expired token"}), 401

        user = db.session.get(User, claims.sub)
        if user is None or not user.is_active:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.token = token
        g.token_claims = claims

        return f(*args, **kwargs)

    return decorated_function
