from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from lumacalm.config import get_settings


class Base(DeclarativeBase):
    pass


settings = get_settings()

# Async engine for FastAPI and the chat session store
async_engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_tables(engine: AsyncEngine = async_engine) -> None:
    """Create all mapped tables that do not exist yet."""
    import lumacalm.models.chat_message  # noqa: F401  (registers the mapping)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
