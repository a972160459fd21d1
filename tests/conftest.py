"""
Shared fixtures: an in-memory async stand-in for the Redis commands the session
store uses, and app wiring with fake pipeline collaborators.
"""

import fnmatch

import pytest

from app.core.session_store import SessionStore
from app.main import app


class FakePipeline:
    def __init__(self, redis: "FakeRedis") -> None:
        self.redis = redis
        self.commands: list[tuple[str, tuple]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc) -> None:
        self.commands.clear()

    def lpush(self, key, *values):
        self.commands.append(("lpush", (key, *values)))
        return self

    def expire(self, key, seconds):
        self.commands.append(("expire", (key, seconds)))
        return self

    async def execute(self) -> list:
        results = []
        for name, args in self.commands:
            results.append(await getattr(self.redis, name)(*args))
        self.commands.clear()
        return results


class FakeRedis:
    """Lists and TTLs only; enough for chat:<id> keys."""

    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple[str, tuple]] = []

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def lpush(self, key, *values):
        self.calls.append(("lpush", (key, *values)))
        lst = self.lists.setdefault(key, [])
        for v in values:
            lst.insert(0, v)
        return len(lst)

    async def expire(self, key, seconds):
        self.calls.append(("expire", (key, seconds)))
        if key not in self.lists:
            return False
        self.ttls[key] = seconds
        return True

    async def lrange(self, key, start, end):
        lst = self.lists.get(key, [])
        end = len(lst) if end == -1 else end + 1
        return lst[start:end]

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.lists.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def exists(self, *keys):
        return sum(1 for k in keys if k in self.lists)

    async def scan_iter(self, match: str = "*"):
        for key in list(self.lists):
            if fnmatch.fnmatch(key, match):
                yield key


class FakeProcessor:
    def __init__(self, answer: str = "Stub answer.") -> None:
        self.answer = answer
        self.queries: list[str] = []

    def process_query(self, query: str) -> str:
        self.queries.append(query)
        return self.answer


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> SessionStore:
    return SessionStore(fake_redis, ttl=600)


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def wired_app(store: SessionStore, processor: FakeProcessor):
    """The FastAPI app with fake store/processor on app.state (lifespan is not run)."""
    app.state.session_store = store
    app.state.processor = processor
    app.state.notice_delay = 3.0
    yield app
    for attr in ("session_store", "processor", "notice_delay"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)
