"""
Health Check Endpoints

- /health       - Liveness payload used by the frontend and load balancer
- /health/ready - Readiness check (database reachable)
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Dict, Any

from app.core.config import settings
from app.core.database import ping_db
from app.core.logging_config import logger


router = APIRouter(prefix="/health", tags=["Health Checks"])


def _timestamp() -> str:
    return datetime.utcnow().isoformat(timespec="milliseconds") + "Z"


async def check_database() -> Dict[str, Any]:
    try:
        latency = await ping_db()
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {"status": "unhealthy", "message": f"Database error: {type(e).__name__}"}
    return {"status": "healthy", "latency_ms": round(latency, 2)}


@router.get("")
async def health_check():
    """Basic liveness check - is the app running?"""
    return {
        "status": "success",
        "message": f"{settings.APP_NAME} API is running",
        "timestamp": _timestamp(),
    }


@router.get("/ready")
async def readiness_check():
    """Ready to take traffic? Returns 503 when the database is unreachable."""
    database = await check_database()
    ready = database["status"] == "healthy"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": _timestamp(),
            "checks": {"database": database},
        },
    )
