from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from taskshare import db
from taskshare.config import DEV_JWT_SECRET, AppInfo, get_settings
from taskshare.core.logging import get_logger, setup_logging
from taskshare.core.runtime_state import set_scheduler_active
import taskshare.models  # noqa: F401  registers the tables
from taskshare.routers import get_api_router, health
from taskshare.services.cron import daily_cleanup_once
from taskshare.utils.errors import DomainError, error_response

logger = get_logger(__name__)
scheduler: AsyncIOScheduler | None = None
ALLOWED_CREATE_ENV = {"dev", "local", "test"}


def _current_settings():
    """Return the cached settings."""

    return get_settings()


def _configure_middlewares(fastapi_app: FastAPI) -> None:
    """Configure middleware using a fresh snapshot of the settings."""

    runtime_settings = _current_settings()
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime_settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    if runtime_settings.PROMETHEUS_ENABLED:
        from starlette_exporter import PrometheusMiddleware, handle_metrics

        fastapi_app.add_middleware(PrometheusMiddleware)
        fastapi_app.add_route("/metrics", handle_metrics)

    if runtime_settings.SENTRY_DSN:
        import sentry_sdk

        sentry_sdk.init(dsn=runtime_settings.SENTRY_DSN, traces_sample_rate=0.2)


def _assert_production_secrets(settings: Any) -> None:
    """Fail fast when secrets still hold development values outside dev/test."""

    if settings.is_dev:
        if settings.JWT_SECRET == DEV_JWT_SECRET:
            logger.warning("Using the development JWT secret; allowed in dev only.", extra={"env": settings.app_env})
        return

    if settings.JWT_SECRET == DEV_JWT_SECRET:
        logger.error("JWT_SECRET is the development default.", extra={"env": settings.app_env})
        raise RuntimeError("Configure JWT_SECRET before starting outside dev.")
    if settings.STRIPE_ENABLED and not (settings.STRIPE_SECRET_KEY and settings.STRIPE_WEBHOOK_SECRET):
        logger.error(
            "Stripe is enabled but STRIPE_SECRET_KEY or STRIPE_WEBHOOK_SECRET is missing.",
            extra={"env": settings.app_env},
        )
        raise RuntimeError("Missing Stripe secrets in non-dev environment.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = _current_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Application startup", extra={"env": settings.app_env})
    _assert_production_secrets(settings)

    db.init_engine()
    env_lower = settings.app_env.lower()
    if settings.ALLOW_DB_CREATE_ALL and env_lower in ALLOWED_CREATE_ENV:
        logger.warning(
            "Running Base.metadata.create_all() because TASKSHARE_ENV=%s and ALLOW_DB_CREATE_ALL=True",
            settings.app_env,
        )
        db.create_all()
    else:
        logger.info(
            "Skipping create_all(); use Alembic migrations. TASKSHARE_ENV=%s, ALLOW_DB_CREATE_ALL=%s",
            settings.app_env,
            settings.ALLOW_DB_CREATE_ALL,
        )

    # In multi-replica deployments enable SCHEDULER_ENABLED on one runner only.
    global scheduler
    set_scheduler_active(False)
    if settings.SCHEDULER_ENABLED:
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            daily_cleanup_once,
            "cron",
            hour=0,
            minute=0,
            id="daily-cleanup",
            replace_existing=True,
        )
        scheduler.start()
        set_scheduler_active(True)
        logger.info("Scheduler started", extra={"env": settings.app_env})
    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)
            scheduler = None
        set_scheduler_active(False)
        db.close_engine()
        logger.info("Application shutdown", extra={"env": settings.app_env})


app_info = AppInfo()

app = FastAPI(title=app_info.name, version=app_info.version, lifespan=lifespan)

_configure_middlewares(app)
app.include_router(health.router)
app.include_router(get_api_router())

_media_root = Path(get_settings().MEDIA_ROOT)
_media_root.mkdir(parents=True, exist_ok=True)
app.mount("/public", StaticFiles(directory=_media_root), name="public")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", exc_info=exc)
    payload = error_response("INTERNAL_SERVER_ERROR", "An unexpected error occurred.")
    return JSONResponse(status_code=500, content=payload)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        content: dict[str, Any] = detail
    else:
        content = error_response("HTTP_ERROR", str(detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info("Domain error", extra={"code": exc.code, "path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": jsonable_encoder(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    payload = error_response("VALIDATION_ERROR", "Request validation failed.", {"errors": errors})
    return JSONResponse(status_code=422, content=payload)


__all__ = ["app"]
