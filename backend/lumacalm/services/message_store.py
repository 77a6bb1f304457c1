"""Chat message persistence.

Inserts chat turns and reads a user's history back in chronological order.
Database errors propagate as SQLAlchemy exceptions; callers decide whether
a failed save is fatal.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lumacalm.db.session import async_session_factory
from lumacalm.models.chat_message import ChatMessageRecord, MessageRole

logger = logging.getLogger(__name__)


class MessageStore:
    """Stores chat turns keyed by user id and creation time."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    ):
        self.session_factory = session_factory

    async def save(self, user_id: str, role: str, content: str) -> ChatMessageRecord:
        """Insert one chat turn and return the stored row."""
        async with self.session_factory() as session:
            record = ChatMessageRecord(
                user_id=user_id,
                role=MessageRole(role),
                content=content,
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)

        logger.debug(f"Saved {role} message for user_id={user_id} (id={record.id})")
        return record

    async def list_for_user(self, user_id: str) -> list[ChatMessageRecord]:
        """Return a user's messages, oldest first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(ChatMessageRecord)
                .where(ChatMessageRecord.user_id == user_id)
                .order_by(ChatMessageRecord.created_at.asc(), ChatMessageRecord.id.asc())
            )
            return list(result.scalars().all())
