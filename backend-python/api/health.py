from fastapi import APIRouter, Request
from datetime import datetime
from sqlalchemy import text

from models.schemas import HealthCheckResponse, SchedulerStatus
from config.database import async_engine

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request):
    """Basic health check for all services"""

    services = {}

    # Check PostgreSQL
    try:
        async with async_engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        services["postgres"] = "connected"
    except Exception as e:
        services["postgres"] = f"disconnected: {str(e)}"

    # Check Redis
    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None or not redis_client.is_configured:
        services["redis"] = "not configured"
    else:
        try:
            services["redis"] = "connected" if await redis_client.ping() else "disconnected"
        except Exception as e:
            services["redis"] = f"disconnected: {str(e)}"

    # Check scheduler
    container = getattr(request.app.state, "container", None)
    if container is not None and container.scheduler.is_running:
        services["scheduler"] = "running"
    else:
        services["scheduler"] = "stopped"

    # Redis is optional, so running without it is healthy
    healthy = {"connected", "running", "not configured"}
    status = "ok" if all(s in healthy for s in services.values()) else "degraded"

    return HealthCheckResponse(
        status=status,
        timestamp=datetime.utcnow().isoformat(),
        services=services
    )


@router.get("/health/jobs", response_model=SchedulerStatus)
async def job_health(request: Request):
    """Scheduled job status"""
    container = getattr(request.app.state, "container", None)
    if container is None:
        return SchedulerStatus(is_running=False, jobs=[])
    return container.scheduler.get_status()
