from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink.core.config import settings
from shortlink.core.logging_config import configure_logging
from shortlink.db.Connection import database
from shortlink.db.Models import models
from shortlink.api import analysis, monitoring, redirect, shortener
from shortlink.RateLimitHelper import (
    check_rate_limit,
    get_client_ip,
    get_rate_limit_config,
    is_rate_limited_path,
)

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application '{settings.PROJECT_NAME}' starting up.")
    models.Base.metadata.create_all(bind=database.get_engine())
    logger.info("Database models initialized/checked.")
    database.verify_database_connection()
    database.verify_redis_connection()
    yield
    logger.info("Shutting down gracefully...")
    database.dispose_database()
    database.close_redis()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="URL shortener with click analytics",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(monitoring.router)
app.include_router(shortener.router)
app.include_router(analysis.router)
# catch-all /{short_code}; must stay last
app.include_router(redirect.router)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if not is_rate_limited_path(request.url.path):
        return await call_next(request)

    limit, window = get_rate_limit_config()
    client_ip = get_client_ip(request) or "unknown"
    key = f"rate_limit:{client_ip}"

    allowed = check_rate_limit(database.get_redis_client(), key, limit, window)
    if allowed is False:
        logger.info(f"Rate limit exceeded for {client_ip} on {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(window)},
            content={"detail": f"Too many requests. Limit is {limit} per {window} seconds."}
        )

    return await call_next(request)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    message = f"{request.method} {request.url.path} status:{response.status_code} duration:{duration_ms:.1f}ms"
    if response.status_code >= 500:
        logger.error(message)
    else:
        logger.info(message)
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
