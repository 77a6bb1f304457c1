import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from lumacalm.api.middleware import apply_cors_headers, cors_headers
from lumacalm.api.router import api_router
from lumacalm.config import get_settings
from lumacalm.db.session import create_tables
from lumacalm.services.relay import MalformedRequest, is_gateway_configured
from lumacalm.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging()
    logger.info("Lumacalm AI backend starting up...")
    if not is_gateway_configured(settings):
        logger.warning("LLM_API_KEY is not configured; chat requests will fail")

    # History is best effort; startup continues without a database
    try:
        await create_tables()
        logger.info("Database tables ready")
    except SQLAlchemyError as e:
        logger.error(f"Could not create database tables: {e}")

    yield
    logger.info("Lumacalm AI backend shutting down...")


app = FastAPI(
    title="Lumacalm AI",
    description="Mental health support chat relay API",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: same permissive headers on every response, preflight answered early
app.middleware("http")(apply_cors_headers)

# Include API routes
app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    error = MalformedRequest(f"Malformed request: {details}")
    logger.warning(error.message)
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.message},
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    logger.exception("Internal server error")
    # Rendered outside the middleware stack, so CORS headers are added here
    return JSONResponse(
        status_code=500,
        content={"error": "An internal error occurred. Please try again later."},
        headers=cors_headers(),
    )
