# Overview: Flask API routes for one-time codes sent by email.

from flask import Blueprint, request, jsonify, current_app

from ..services import otp_service
from ..validation import ServiceError


otp_bp = Blueprint("otp", __name__, url_prefix="/api/otp")


@otp_bp.post("/send")
def send_otp_route():
    """Body: {email}"""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(otp_service.send_otp(data.get("email"))), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to send OTP")
        return jsonify({"error": "Failed to send OTP code"}), 500


@otp_bp.post("/verify")
def verify_otp_route():
    """
    Body: {email, code}

    Wrong, used or expired codes answer 200 with is_valid false.
    """
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(otp_service.verify_otp(data.get("email"), data.get("code"))), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to verify OTP")
        return jsonify({"error": "Failed to verify OTP code"}), 500
