"""Chat relay to the LLM gateway.

Prepends the support system prompt to the caller's conversation, sends it
to the gateway in a single non-streaming request and returns the reply
together with the crisis flag for the latest user message. Nothing is
retried; every failure is raised once as a RelayError subclass.
"""
import logging
from collections.abc import Sequence
from pathlib import Path

import httpx
from pydantic import ValidationError

from lumacalm.config import Settings, get_settings
from lumacalm.schemas.chat import ChatCompletion, ChatMessage, RelayResponse
from lumacalm.services.crisis import detect_crisis

logger = logging.getLogger(__name__)

PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "support_system.txt"

FALLBACK_REPLY = "I'm here to listen. Can you tell me more?"

PLACEHOLDER_KEYS = ("placeholder", "your-api-key-here")


class RelayError(Exception):
    """Base class for relay failures. Carries the HTTP status to return."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(RelayError):
    """Raised when the gateway credential is missing."""


class RateLimited(RelayError):
    """Raised when the gateway throttles us (HTTP 429)."""

    status_code = 429


class QuotaExceeded(RelayError):
    """Raised when the gateway account is out of credits (HTTP 402)."""

    status_code = 402


class UpstreamUnavailable(RelayError):
    """Raised for any other gateway failure, including transport errors."""


class MalformedRequest(RelayError):
    """Raised when the incoming conversation cannot be relayed."""


def load_system_prompt() -> str:
    """Load the support system prompt."""
    if not PROMPT_PATH.exists():
        raise FileNotFoundError(f"Prompt file not found: {PROMPT_PATH}")
    return PROMPT_PATH.read_text(encoding="utf-8").strip()


def is_gateway_configured(settings: Settings | None = None) -> bool:
    """Check if the gateway API key is set (not empty/placeholder)."""
    settings = settings or get_settings()
    key = settings.llm_api_key
    return bool(key) and key not in PLACEHOLDER_KEYS


class RelayService:
    """Forwards conversations to the configured chat completions gateway."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport
        self.system_prompt = load_system_prompt()

    def build_payload(self, messages: Sequence[ChatMessage]) -> dict:
        """Gateway request body: system prompt first, then the conversation."""
        outbound = [{"role": "system", "content": self.system_prompt}]
        outbound.extend({"role": m.role, "content": m.content} for m in messages)
        return {
            "model": self.settings.llm_chat_model,
            "messages": outbound,
            "stream": False,
        }

    async def relay(self, messages: Sequence[ChatMessage]) -> RelayResponse:
        """Relay a conversation and return the reply with its crisis flag.

        Args:
            messages: Conversation oldest first; the last turn must be the user's.

        Raises:
            ConfigurationError: If no gateway API key is configured.
            MalformedRequest: If the conversation is empty or ends on an assistant turn.
            RateLimited: If the gateway answers 429.
            QuotaExceeded: If the gateway answers 402.
            UpstreamUnavailable: On any other gateway or transport failure.
        """
        if not is_gateway_configured(self.settings):
            raise ConfigurationError("LLM_API_KEY is not configured")

        if not messages:
            raise MalformedRequest("Conversation must contain at least one message.")
        last = messages[-1]
        if last.role != "user":
            raise MalformedRequest("The last message must come from the user.")

        payload = self.build_payload(messages)
        logger.info(
            f"Relaying conversation: model={self.settings.llm_chat_model}, "
            f"turns={len(messages)}"
        )

        response = await self._post(payload)
        reply = self._parse_reply(response)

        is_crisis = detect_crisis(last.content)
        if is_crisis:
            logger.warning("Crisis keywords detected in latest user message")

        return RelayResponse(message=reply, is_crisis=is_crisis)

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.settings.llm_api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.llm_timeout,
                transport=self.transport,
            ) as client:
                return await client.post(
                    self.settings.llm_gateway_url,
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"AI gateway request failed: {type(e).__name__}: {e}")
            raise UpstreamUnavailable("AI service unavailable") from e

    def _parse_reply(self, response: httpx.Response) -> str:
        if response.status_code == 429:
            raise RateLimited("Rate limit exceeded. Please try again later.")
        if response.status_code == 402:
            raise QuotaExceeded("Payment required. Please add credits to continue.")
        if not response.is_success:
            logger.error(f"AI gateway error: status={response.status_code}, body={response.text}")
            raise UpstreamUnavailable("AI service unavailable")

        try:
            completion = ChatCompletion.model_validate_json(response.content)
        except ValidationError as e:
            logger.error(f"AI gateway returned an unreadable completion: {e}")
            raise UpstreamUnavailable("AI service unavailable") from e

        return completion.reply_text() or FALLBACK_REPLY
