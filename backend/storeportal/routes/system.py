# backend/storeportal/routes/system.py
"""
Health and version endpoints for the portal API.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Store, User, SessionToken
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    start_time = time.time()
    try:
        store_count = db.session.query(Store).count()
        user_count = db.session.query(User).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"stores": store_count, "users": user_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_session_health() -> dict:
    """Live sessions, plus expired ones still waiting for `maintenance cleanup-sessions`."""
    start_time = time.time()
    try:
        live = db.session.query(SessionToken).filter(SessionToken.is_revoked.is_(False)).count()
        stale = db.session.query(SessionToken).filter(
            SessionToken.refresh_expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": live, "expired_pending_cleanup": stale},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error",
        }


@system_bp.get("/health")
def health():
    """200 when every check is healthy, 503 otherwise."""
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "sessions": check_session_health(),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }
    return response, 200 if healthy else 503


@system_bp.get("/version")
def version():
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
