from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shortlink.core.config import settings
from shortlink.db.Connection import database

router = APIRouter(tags=["health"])

SERVICE_NAME = "url-shortener"


@router.get("/")
def root():
    return {"service": SERVICE_NAME, "status": "ok"}


# simple liveness
@router.get("/health")
def health_check():
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/healthz")
def healthz():
    return {"ok": True, "timestamp": datetime.now(timezone.utc).isoformat(), "service": SERVICE_NAME}


# readiness: database plus Redis when configured
@router.get("/status")
def status_check():
    checks = {
        "database": database.verify_database_connection(),
        "redis": database.verify_redis_connection(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    ok = checks["database"] and checks["redis"]
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"ok": ok, "service": settings.PROJECT_NAME, "checks": checks},
    )
