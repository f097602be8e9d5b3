from contextlib import asynccontextmanager

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from localehub.api import features, keys, languages, projects, translations
from localehub.config import get_settings
from localehub.database import check_connection, init_db
from localehub.exceptions import InvalidInputError, NotFoundError
from localehub.jobs.fill_missing_translations import fill_missing_translations_job
from localehub.logging_config import configure_logging
from localehub.middleware.request_id import RequestIdMiddleware
from localehub.utils.response_cache import init_response_cache

# Configure structured logging
configure_logging()
logger = structlog.get_logger(__name__)

settings = get_settings()
scheduler = AsyncIOScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_cache = None
    scheduler_started = False

    # Startup: Initialize database
    await init_db()
    logger.info("Database initialized")

    if settings.enable_response_cache and settings.redis_url:
        try:
            redis_cache = Redis.from_url(settings.redis_url)
            init_response_cache(redis_cache)
            logger.info("Response cache initialized")
        except RedisError as e:
            logger.error(f"Failed to initialize Redis cache: {type(e).__name__}: {e}")
            redis_cache = None
    elif settings.enable_response_cache:
        logger.info("Response cache enabled but REDIS_URL is missing; caching disabled")

    if settings.scheduler_enabled and settings.auto_translate_enabled:
        interval = settings.auto_translate_interval_minutes
        scheduler.add_job(
            fill_missing_translations_job,
            'interval',
            minutes=interval,
            id='fill_missing_translations',
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        scheduler_started = True
        logger.info("Background jobs scheduled", job="fill_missing_translations", interval_minutes=interval)

    yield

    # Shutdown
    if scheduler_started:
        scheduler.shutdown()
        logger.info("Scheduler shut down")

    if redis_cache:
        await redis_cache.close()
        await redis_cache.connection_pool.disconnect()
    logger.info("Shutting down...")


app = FastAPI(
    title="LocaleHub API",
    description="Localization key management with AI-assisted translation",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None if settings.app_env == "production" else "/docs",
    redoc_url=None if settings.app_env == "production" else "/redoc",
    openapi_url=None if settings.app_env == "production" else "/openapi.json",
)

# Prometheus metrics
if settings.prometheus_enabled:
    from prometheus_fastapi_instrumentator import Instrumentator

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/metrics"],
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

cors_origins = [
    settings.frontend_url,
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

app.add_middleware(RequestIdMiddleware)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Include routers
app.include_router(translations.router, prefix="/api/translations", tags=["translations"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
app.include_router(features.router, prefix="/api/features", tags=["features"])
app.include_router(languages.router, prefix="/api/languages", tags=["languages"])
app.include_router(keys.router, prefix="/api/keys", tags=["keys"])


@app.get("/")
async def root():
    if settings.app_env == "production":
        return {"status": "ok"}
    return {
        "message": "LocaleHub API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint that verifies database connectivity."""
    try:
        await check_connection()
        return {"status": "healthy", "database": "connected"}
    except (SQLAlchemyError, OSError, ConnectionError, TimeoutError) as e:
        logger.warning(f"Health check failed: {type(e).__name__}: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected"}
        )
