"""Health check route"""

from datetime import datetime, timezone
from typing import Dict
import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from adapters import groq_adapter, storage_adapter, stripe_adapter
from app.config import settings
from domain.models import check_database

router = APIRouter(tags=["Health"])
logger = logging.getLogger("nutriflow.api.health")

_STARTED_AT = time.monotonic()


def _service(status: str, message: str) -> Dict[str, str]:
    return {
        "status": status,
        "message": message,
        "lastChecked": datetime.now(timezone.utc).isoformat(),
    }


def _check_database() -> Dict[str, str]:
    try:
        if check_database():
            return _service("connected", "Database connection successful")
        return _service("disconnected", "Database query failed")
    except Exception as e:
        logger.exception("Database health check failed")
        return _service("disconnected", str(e))


def _configured(is_configured: bool, name: str) -> Dict[str, str]:
    if is_configured:
        return _service("connected", f"{name} configured")
    return _service("not_configured", f"No {name} configured")


def overall_status(services: Dict[str, Dict[str, str]]) -> str:
    """Unhealthy when the database is down; degraded when anything else is."""
    if services["database"]["status"] == "disconnected":
        return "unhealthy"
    statuses = {service["status"] for service in services.values()}
    if statuses & {"degraded", "disconnected"}:
        return "degraded"
    return "healthy"


@router.get("/health")
def health_check():
    """System status and service availability"""
    start = time.perf_counter()
    services = {
        "database": _check_database(),
        "ai": _configured(groq_adapter.is_configured(), "AI service"),
        "storage": _configured(storage_adapter.is_configured(), "storage service"),
        "payments": _configured(stripe_adapter.is_configured(), "payment provider"),
    }
    status = overall_status(services)
    body = {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "services": services,
        "environment": settings.environment.value,
        "performance": {"responseTime": round((time.perf_counter() - start) * 1000, 2)},
    }
    return JSONResponse(body, status_code=503 if status == "unhealthy" else 200)
