# backend/app/routes/system.py
"""
System health and version endpoints.

Health covers database connectivity, the revocation table and the
reference data (user types, notification channels) the core relies on.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import NotificationChannel, Product, RevokedToken, User, UserType
from app.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def _timed_check(name: str, probe) -> dict:
    """
    Run a probe and report its latency.

    The probe returns (status, details); any exception marks the check
    unhealthy and is logged.
    """
    start_time = time.time()
    try:
        status, details = probe()
        result = {"status": status, "details": details}
    except Exception:
        current_app.logger.exception("%s health check failed", name)
        result = {"status": "unhealthy", "error": f"{name} error"}
    result["latency_ms"] = round((time.time() - start_time) * 1000, 2)
    return result


def _probe_database():
    return "healthy", {
        "users": db.session.query(User).count(),
        "products": db.session.query(Product).count(),
    }


def _probe_revocations():
    return "healthy", {
        "revoked_tokens": db.session.query(RevokedToken).count(),
        "expired_pending_purge": db.session.query(RevokedToken)
        .filter(RevokedToken.expires_at < utcnow())
        .count(),
    }


def _probe_reference_data():
    details = {
        "user_types": db.session.query(UserType).count(),
        "notification_channels": db.session.query(NotificationChannel).count(),
    }
    # Missing seed rows: run `flask system init`
    status = "healthy" if all(details.values()) else "degraded"
    return status, details


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    checks = {
        "database": _timed_check("Database", _probe_database),
        "token_service": _timed_check("Token service", _probe_revocations),
        "reference_data": _timed_check("Reference data", _probe_reference_data),
    }
    statuses = {check["status"] for check in checks.values()}

    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    return {
        "api_version": "0.1.0",
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
