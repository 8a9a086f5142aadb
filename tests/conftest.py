"""Shared fixtures: a real SQLite database per test plus fake collaborators."""

from __future__ import annotations

import pytest

from fakes import FakeCodeExecutor, FakeGateway, FakeSearchAdapter
from switchboard.ai.agents.coding import CodingAgent
from switchboard.ai.agents.generic import GenericAgent
from switchboard.ai.agents.search import SearchAgent
from switchboard.ai.router import Router
from switchboard.chat.service import ChatService, User
from switchboard.storage.conversation_repo import ConversationRepository
from switchboard.storage.database import Database
from switchboard.storage.message_repo import MessageRepository


def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "slow: spawns interpreter subprocesses")


@pytest.fixture
async def db(tmp_path):
    database = Database(str(tmp_path / "switchboard.db"))
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def conversation_repo(db) -> ConversationRepository:
    return ConversationRepository(db)


@pytest.fixture
def message_repo(db) -> MessageRepository:
    return MessageRepository(db)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def search_adapter() -> FakeSearchAdapter:
    return FakeSearchAdapter()


@pytest.fixture
def code_executor() -> FakeCodeExecutor:
    return FakeCodeExecutor()


@pytest.fixture
def user() -> User:
    return User(id="user-1", email="user@example.com", username="user1")


@pytest.fixture
def make_service(conversation_repo, message_repo, search_adapter, code_executor):
    """Build a ChatService around a given gateway (real agents, fake adapters)."""

    def _make(gateway: FakeGateway, history_limit: int = 20) -> ChatService:
        router = Router(
            general=GenericAgent(gateway),
            web_search=SearchAgent(gateway, search_adapter),
            code_execution=CodingAgent(gateway, code_executor),
        )
        return ChatService(
            router=router,
            conversation_repo=conversation_repo,
            message_repo=message_repo,
            history_limit=history_limit,
        )

    return _make
