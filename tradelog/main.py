from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse, PlainTextResponse

from tradelog.core.config import settings
from tradelog.core.errors import JournalError
from tradelog.core.logging_config import setup_logging
from tradelog.models.db import engine, init_models

# configure logging before the routers import their loggers
setup_logging(settings.LOG_LEVEL)
from tradelog.routers import trades, stats, market, coach, uploads
from tradelog.services.ai_client_manager import get_circuit_breaker_status

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, release the engine on shutdown"""
    await init_models()
    logger.info(f"{settings.APP_NAME} started (database: {engine.url.render_as_string(hide_password=True)})")

    yield

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan, default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1024)


@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.detail}")
    body = {"error": exc.error, "detail": exc.detail}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return ORJSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are reported like any other validation error: 400, first field named."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = loc[-1] if loc else "body"
    detail = f"{field}: {first.get('msg', 'invalid input')}"
    logger.info(f"{request.method} {request.url.path} rejected: {detail}")
    return ORJSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": detail, "field": field},
    )


app.include_router(trades.router)
app.include_router(stats.router)
app.include_router(market.router)
app.include_router(coach.router)
app.include_router(uploads.router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Trade Journal backend is running!"


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "ai_circuit_breakers": get_circuit_breaker_status(),
    }
