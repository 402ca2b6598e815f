# backend/hazel/routes/system.py
"""
System health and version endpoints.

Unauthenticated; safe for load balancer probes. Nothing here exposes
configuration values, only whether optional integrations are configured.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import SessionToken
from hazel.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """Round-trip a trivial query and count live sessions."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at > utcnow(),
        ).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": active_sessions},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_push_health() -> dict:
    configured = bool(current_app.config.get("VAPID_PUBLIC_KEY") and current_app.config.get("VAPID_PRIVATE_KEY"))
    # Push is optional; missing keys degrade rather than fail
    return {"status": "healthy" if configured else "degraded", "configured": configured}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (optional integrations missing)
    - 503: database unreachable
    """
    start_time = time.time()
    database_health = check_database_health()
    push_health = check_push_health()

    if database_health["status"] == "unhealthy":
        overall_status, http_status = "unhealthy", 503
    elif push_health["status"] == "degraded":
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "push": push_health,
            "error_webhook": {"configured": bool(current_app.config.get("ERROR_WEBHOOK_URL"))},
        },
    }, http_status


@system_bp.get("/version")
def version():
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
