"""
FastAPI application initialization
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from api.interpreter import OpenAIInterpreter
from api.middleware import RequestContextMiddleware
from api.routes import ask, health, rivers
from core.config import settings
from core.exceptions import HydroException
from core.logging import setup_logging
from ingestion.cache import RiverDataCache
from ingestion.loaders.sqlite_loader import SQLiteRiverRepository
from ingestion.runner import build_default_runner
from ingestion.scheduler import RefreshScheduler
from schemas.api import ErrorResponse
import logging

setup_logging()

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "River data is temporarily unavailable. Please try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store, wire the refresh runner and start the scheduler."""
    logger.info("Starting River Levels API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_PATH}")

    repository = await SQLiteRiverRepository.open(settings.DATABASE_PATH)
    runner = build_default_runner(repository)

    async def load_live():
        records, _ = await runner.collect()
        return records

    app.state.repository = repository
    app.state.runner = runner
    app.state.cache = RiverDataCache(loader=load_live)

    interpreter = OpenAIInterpreter()
    app.state.interpreter = interpreter if interpreter.is_available() else None
    if app.state.interpreter is None:
        logger.warning("OPENAI_API_KEY not set, /ask is disabled")

    scheduler = RefreshScheduler(runner)
    app.state.scheduler = scheduler
    scheduler.start()

    try:
        yield
    finally:
        logger.info("Shutting down River Levels API")
        scheduler.stop()
        await repository.close()


app = FastAPI(
    title="River Levels API",
    description="Latest water levels scraped from hydrological bulletins",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health.router)
app.include_router(rivers.router)
app.include_router(ask.router)


@app.exception_handler(HydroException)
async def hydro_exception_handler(request: Request, exc: HydroException):
    """Log the full error, answer with a generic message."""
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"[{request_id}] {exc}", extra={"error_context": exc.to_dict()})

    body = ErrorResponse(error=type(exc).__name__, message=UNAVAILABLE_MESSAGE, request_id=request_id)
    return JSONResponse(status_code=503, content=body.model_dump(mode="json"))


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "River Levels API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "rivers": "/rivers",
            "river": "/rivers/{name}",
            "last_update": "/last-update",
            "live": "/live",
            "refresh": "/refresh",
            "ask": "/ask"
        }
    }
