"""Shared fixtures: settings defaults and an in-memory stand-in for the DB session."""

import os
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEEPSEEK_API_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "warning")

from src.common.ai.deepseek import ChatCompletion  # noqa: E402


class FakeSession:
    """Records added rows and the commit/rollback calls made on it."""

    def __init__(self, execute_result=None, fail_commit: bool = False):
        self.added = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_commit = fail_commit
        self._execute_result = execute_result
        self.statements = []

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        if self.fail_commit:
            raise RuntimeError("database is down")
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    async def refresh(self, obj):
        if getattr(obj, "id", None) is None:
            obj.id = uuid.uuid4()

    async def execute(self, stmt):
        self.statements.append(stmt)
        result = MagicMock()
        result.scalars.return_value.first.return_value = self._execute_result
        result.scalars.return_value.all.return_value = (
            [self._execute_result] if self._execute_result is not None else []
        )
        return result


class FakeSessionFactory:
    """Callable like an async_sessionmaker; every call opens a new FakeSession."""

    def __init__(self, **session_kwargs):
        self.sessions = []
        self._session_kwargs = session_kwargs

    def __call__(self):
        session = FakeSession(**self._session_kwargs)
        self.sessions.append(session)
        return _SessionContext(session)


class _SessionContext:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, *exc_info):
        return False


class FakeAIClient:
    """Returns canned replies in order; an Exception instance in the list is raised."""

    def __init__(self, *replies, tokens: int = 100):
        self.replies = list(replies)
        self.tokens = tokens
        self.calls = []

    async def chat_completion(self, messages, model="deepseek-chat", max_tokens=4000, temperature=0.7):
        self.calls.append({"messages": messages, "model": model, "max_tokens": max_tokens})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ChatCompletion(content=reply, total_tokens=self.tokens, model=model)


@pytest.fixture
def session_factory():
    return FakeSessionFactory()


@pytest.fixture
def db():
    return FakeSession()


@pytest.fixture
def dispatcher():
    mock = MagicMock()
    mock.dispatch = AsyncMock()
    return mock


@pytest.fixture
def make_ai_client():
    return FakeAIClient


@pytest.fixture
def make_session_factory():
    return FakeSessionFactory


@pytest.fixture
def make_session():
    return FakeSession
