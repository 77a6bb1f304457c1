"""Health check endpoint with dependency verification."""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from lumacalm.config import get_settings
from lumacalm.db.session import async_engine
from lumacalm.services.relay import is_gateway_configured

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint with dependency verification.

    Checks:
    - Database connectivity (SELECT 1 query)
    - LLM gateway credential is configured

    Returns:
        JSON response with overall status and individual check results
    """
    checks = {}
    overall_healthy = True

    # Check database
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        checks["database"] = f"error: {type(e).__name__}"
        overall_healthy = False

    # Check LLM gateway configuration (no request is sent)
    if is_gateway_configured(get_settings()):
        checks["llm_gateway"] = "ok"
    else:
        checks["llm_gateway"] = "error: LLM_API_KEY not configured"
        overall_healthy = False

    status_code = 200 if overall_healthy else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "healthy" if overall_healthy else "unhealthy",
            "service": "lumacalm",
            "checks": checks,
        },
    )
