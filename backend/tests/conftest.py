import json
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lumacalm.api.v1.chat import get_relay_service
from lumacalm.config import Settings
from lumacalm.db.session import create_tables
from lumacalm.main import app
from lumacalm.services.message_store import MessageStore
from lumacalm.services.relay import RelayService


class FakeGateway:
    """Stands in for the LLM gateway via httpx.MockTransport.

    Records every request body and answers with the configured status,
    JSON body or raw text. Set `error` to raise a transport exception.
    """

    def __init__(self):
        self.status_code = 200
        self.json_body: dict | None = completion("I hear you. That sounds hard.")
        self.text_body: str | None = None
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text_body is not None:
            return httpx.Response(self.status_code, text=self.text_body)
        return httpx.Response(self.status_code, json=self.json_body)


def completion(content: str | None) -> dict:
    """Minimal chat completion body with a single choice."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture(autouse=True)
def startup_tables(monkeypatch):
    """Keeps app startup off the real database."""
    create = AsyncMock()
    monkeypatch.setattr("lumacalm.main.create_tables", create)
    return create


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, llm_api_key="test-key")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def relay_service(test_settings, gateway):
    return RelayService(test_settings, transport=gateway.transport)


@pytest.fixture
def test_client(relay_service):
    """FastAPI test client with the relay wired to the fake gateway."""
    app.dependency_overrides[get_relay_service] = lambda: relay_service
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """File-backed SQLite engine with the schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'lumacalm.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def message_store(sqlite_engine):
    factory = async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)
    return MessageStore(factory)
