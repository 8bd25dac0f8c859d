# app/backend/routers/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.backend.core.metrics import cpu_usage, memory_usage, system_info

router = APIRouter(tags=["health"])


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _storage_counts(request: Request) -> dict:
    state = request.app.state
    return {
        "tasks": state.task_store.count(),
        "users": state.user_store.count(),
    }


@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    monitor = request.app.state.monitor
    return {
        "status": "healthy",
        "timestamp": _now_iso(),
        "uptime": monitor.uptime(),
        "environment": settings.environment,
        "version": settings.app_version,
        "memory": memory_usage(),
        "cpu": cpu_usage(),
        "storage": _storage_counts(request),
        "performance": monitor.get_metrics(),
        "config": {
            "port": settings.port,
            "rateLimitMax": settings.rate_limit_max,
            "compressionEnabled": settings.compression_enabled,
        },
    }


@router.get("/metrics")
async def metrics(request: Request):
    settings = request.app.state.settings
    monitor = request.app.state.monitor
    return {
        "timestamp": _now_iso(),
        "uptime": monitor.uptime(),
        "memory": memory_usage(),
        "cpu": cpu_usage(),
        "performance": monitor.get_metrics(),
        "system": system_info(),
        "application": {
            "environment": settings.environment,
            "version": settings.app_version,
            "storage": _storage_counts(request),
        },
    }


@router.get("/ready")
async def ready(request: Request):
    state = request.app.state
    is_ready = all(
        getattr(state, name, None) is not None
        for name in ("settings", "task_store", "user_store")
    )
    if not is_ready:
        return JSONResponse(status_code=503, content={"status": "not ready"})
    return {"status": "ready"}


@router.get("/live")
async def live():
    return {"status": "alive"}


@router.get("/api", tags=["meta"])
async def api_info(request: Request):
    settings = request.app.state.settings
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "tasks": "/api/tasks",
            "profile": "/api/profile",
            "auth": "/auth",
        },
    }
