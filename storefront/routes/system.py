# storefront/routes/system.py
"""System health endpoint."""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from storefront.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def _sweeper_status(sweeper) -> str:
    if sweeper is None:
        return "disabled"
    return "running" if sweeper.is_running else "stopped"


@system_bp.get("/health")
def health():
    database = check_database_health()
    sweeper = current_app.extensions.get("offer_sweeper")
    body = {
        "status": database["status"],
        "checked_at": to_utc_z(utcnow()),
        "database": database,
        "offer_sweeper": _sweeper_status(sweeper),
    }
    return body, 200 if database["status"] == "healthy" else 503
