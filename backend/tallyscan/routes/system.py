# backend/tallyscan/routes/system.py
"""
System health and version endpoints.

No tenant header required.
"""

import sys
import time
from flask import Blueprint, current_app
from sqlalchemy import func, text
from ..extensions import db
from ..models import InventoryAdjustment, Product
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_ledger_health() -> dict:
    """
    Count products whose cached quantity disagrees with their ledger sum.

    Drift is "degraded", not "unhealthy": counting still works and
    `flask inventory rebuild-quantities` repairs it.
    """
    start_time = time.time()
    try:
        sums = (
            db.session.query(
                InventoryAdjustment.product_id.label("product_id"),
                func.sum(InventoryAdjustment.qty_added).label("total"),
            )
            .group_by(InventoryAdjustment.product_id)
            .subquery()
        )
        drifted = (
            db.session.query(func.count(Product.id))
            .outerjoin(sums, sums.c.product_id == Product.id)
            .filter(Product.quantity != func.coalesce(sums.c.total, 0))
            .scalar()
        ) or 0
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy" if drifted == 0 else "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "drifted_products": drifted,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Ledger health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Ledger check failed"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: Database reachable (status "degraded" if quantity caches drifted)
    - 503: Database unreachable
    """
    database_health = check_database_health()
    if database_health["status"] != "healthy":
        return {
            "status": "unhealthy",
            "timestamp": to_utc_z(utcnow()),
            "checks": {"database": database_health},
        }, 503

    ledger_health = check_ledger_health()
    overall = "healthy" if ledger_health["status"] == "healthy" else "degraded"

    return {
        "status": overall,
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database_health,
            "ledger": ledger_health,
        },
    }, 200


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
