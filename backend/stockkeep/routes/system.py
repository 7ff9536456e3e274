# Overview: System health endpoint.

import time
from flask import Blueprint, current_app

from ..services.inventory import get_ledger
from ..storage import Query

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_storage_health() -> dict:
    """
    Count every collection through the storage port.

    Returns dict with status and details.
    """
    start_time = time.time()
    ledger = get_ledger()
    try:
        counts = {
            name: ledger.backend.count(name, Query())
            for name in ("users", "categories", "items", "transactions")
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "backend": ledger.backend.name,
            "response_time_ms": round(elapsed_ms, 2),
            "counts": counts,
        }
    except Exception as e:
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "backend": ledger.backend.name,
            "error": str(e),
        }


@system_bp.get("/health")
def health():
    storage = check_storage_health()
    status_code = 200 if storage["status"] == "healthy" else 503
    return {"status": storage["status"], "storage": storage}, status_code
