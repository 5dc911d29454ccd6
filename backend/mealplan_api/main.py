"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from loguru import logger

from . import models
from .auth import router as auth_router
from .config import get_settings
from .database import engine
from .errors import (
    AppError,
    ConfigurationError,
    app_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .logging_config import setup_logger
from .routers.users import router as users_router

app = FastAPI(title="Meal Planner API", version="0.1.0")
app.include_router(auth_router)
app.include_router(users_router)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.on_event("startup")
async def on_startup() -> None:
    """Refuse to start without a signing key, then ensure tables exist."""

    settings = get_settings()
    setup_logger(settings.log_level)

    if not settings.has_signing_key:
        logger.critical("SECRET_KEY is not set; refusing to start without a token signing key")
        raise ConfigurationError("SECRET_KEY is not set")

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    logger.info("Meal Planner API started")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await engine.dispose()


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple readiness probe for uptime checks."""

    return {"status": "ok"}
