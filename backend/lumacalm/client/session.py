"""Chat page state for a signed-in user.

Holds the displayed conversation plus the flags the page renders from:
loading indicator, crisis banner, breathing panel and error notice.
Saving turns is best effort: a failed save is logged and the conversation
carries on.
"""
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError

from lumacalm.client.auth import AuthProvider, AuthUser, NotAuthenticated, require_user
from lumacalm.client.breathing import BreathingExercise
from lumacalm.models.chat_message import ChatMessageRecord
from lumacalm.schemas.chat import ChatMessage, RelayResponse
from lumacalm.services.crisis import CRISIS_RESOURCES, CrisisResource, wants_breathing_exercise
from lumacalm.services.message_store import MessageStore
from lumacalm.services.relay import RelayError, RelayService

logger = logging.getLogger(__name__)


class ChatTurn(NamedTuple):
    """A message as displayed in the chat list."""

    id: str
    role: str
    content: str
    created_at: datetime

    @classmethod
    def local(cls, role: str, content: str) -> "ChatTurn":
        """A turn shown before (or without) a stored row."""
        return cls(
            id=f"temp-{uuid.uuid4()}",
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
        )

    @classmethod
    def from_record(cls, record: ChatMessageRecord) -> "ChatTurn":
        return cls(
            id=record.id,
            role=record.role.value,
            content=record.content,
            created_at=record.created_at,
        )


class ChatSession:
    """State machine behind the chat page."""

    def __init__(
        self,
        auth: AuthProvider,
        store: MessageStore,
        relay: RelayService,
        breathing_factory: Callable[[], BreathingExercise] = BreathingExercise,
    ):
        self.auth = auth
        self.store = store
        self.relay = relay
        self.breathing_factory = breathing_factory

        self.user: AuthUser | None = None
        self.messages: list[ChatTurn] = []
        self.loading = False
        self.show_crisis_alert = False
        self.error_notice: str | None = None
        self.breathing: BreathingExercise | None = None

    @property
    def show_breathing_exercise(self) -> bool:
        return self.breathing is not None

    @property
    def crisis_resources(self) -> tuple[CrisisResource, ...]:
        """Helplines to list on the crisis banner, empty while it is hidden."""
        return CRISIS_RESOURCES if self.show_crisis_alert else ()

    async def open(self) -> None:
        """Resolve the signed-in user and load their history.

        Raises:
            NotAuthenticated: If nobody is signed in.
        """
        self.user = await require_user(self.auth)

        try:
            records = await self.store.list_for_user(self.user.id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading messages for user_id={self.user.id}: {e}")
            return

        self.messages = [ChatTurn.from_record(r) for r in records]
        logger.info(f"Chat session opened: user_id={self.user.id}, messages={len(self.messages)}")

    async def close(self) -> None:
        """Tear down view-owned timers."""
        self.close_breathing_exercise()

    async def __aenter__(self) -> "ChatSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def send(self, text: str) -> RelayResponse | None:
        """Send a user message and append the assistant's reply.

        Returns the relay response, or None when the message was ignored
        (blank input, send already in flight) or the relay failed; in the
        latter case `error_notice` holds the reason.
        """
        content = text.strip()
        if not content or self.loading:
            return None
        if self.user is None:
            raise NotAuthenticated()

        if wants_breathing_exercise(content):
            self.open_breathing_exercise()

        self.loading = True
        self.error_notice = None

        conversation = [ChatMessage(role=t.role, content=t.content) for t in self.messages]
        conversation.append(ChatMessage(role="user", content=content))

        self.messages.append(ChatTurn.local("user", content))

        try:
            await self._save("user", content)

            result = await self.relay.relay(conversation)

            if result.is_crisis:
                self.show_crisis_alert = True

            self.messages.append(ChatTurn.local("assistant", result.message))
            await self._save("assistant", result.message)
            return result

        except RelayError as e:
            logger.warning(f"Chat error: {e.message}")
            self.error_notice = e.message
            return None

        finally:
            self.loading = False

    def dismiss_error(self) -> None:
        self.error_notice = None

    def open_breathing_exercise(self) -> None:
        if self.breathing is None:
            self.breathing = self.breathing_factory()
            self.breathing.start()

    def close_breathing_exercise(self) -> None:
        if self.breathing is not None:
            self.breathing.stop()
            self.breathing = None

    def toggle_breathing_exercise(self) -> None:
        if self.breathing is None:
            self.open_breathing_exercise()
        else:
            self.close_breathing_exercise()

    async def logout(self) -> None:
        """Sign out and reset the page state."""
        await self.auth.sign_out()
        self.close_breathing_exercise()
        logger.info(f"User signed out: user_id={self.user.id if self.user else None}")
        self.user = None
        self.messages = []
        self.loading = False
        self.show_crisis_alert = False
        self.error_notice = None

    async def _save(self, role: str, content: str) -> None:
        try:
            await self.store.save(self.user.id, role, content)
        except SQLAlchemyError as e:
            logger.error(f"Error saving {role} message: {e}")
