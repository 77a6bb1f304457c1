"""Chat relay endpoint.

Forwards the caller's conversation to the LLM gateway and returns the
assistant reply with the crisis flag for the latest user message.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from lumacalm.schemas.chat import ConversationRequest, ErrorResponse, RelayResponse
from lumacalm.services.relay import RelayError, RelayService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_relay_service() -> RelayService:
    """FastAPI dependency: a relay bound to the current settings."""
    return RelayService()


@router.post(
    "",
    response_model=RelayResponse,
    responses={
        402: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def relay_chat(
    request: ConversationRequest,
    relay: RelayService = Depends(get_relay_service),
):
    """Relay a conversation and return `{message, isCrisis}`."""
    try:
        result = await relay.relay(request.messages)
    except RelayError as e:
        logger.warning(f"Chat relay failed ({type(e).__name__}): {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.message},
        )

    return result
