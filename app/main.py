"""Cyber Quest progression engine - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.errors import (
    HabitNotFound,
    InvalidAmount,
    InvalidAnswer,
    InvalidSessionState,
    NoAnswerSelected,
    ProfileExists,
    ProfileNotFound,
    ProgressionError,
    QuizNotFound,
    StoreUnavailable,
)
from app.db.base import Base
from app.db.session import AsyncSessionLocal, engine
from app.routers import api
from app.services.catalog import load_catalog
from app.services.progression import ProgressionService
from app.services.store import SqlProfileStore

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# first match wins; unlisted errors are client errors
ERROR_STATUS = (
    (ProfileNotFound, 404),
    (QuizNotFound, 404),
    (HabitNotFound, 404),
    (ProfileExists, 409),
    (InvalidSessionState, 409),
    (InvalidAmount, 400),
    (NoAnswerSelected, 400),
    (InvalidAnswer, 400),
    (StoreUnavailable, 503),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s", settings.app_name, settings.version)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    catalog = load_catalog(settings.catalog_dir)
    store = SqlProfileStore(AsyncSessionLocal, timeout=settings.store_timeout_seconds)
    app.state.progression = ProgressionService(store, catalog, settings)

    yield
    await engine.dispose()
    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Points, levels, badges and habit rotation for security training",
    lifespan=lifespan,
)

app.include_router(api.router)


@app.exception_handler(ProgressionError)
async def progression_error_handler(request: Request, exc: ProgressionError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    if status_code == 503:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": settings.version}
