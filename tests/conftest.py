"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from httpx import AsyncClient, ASGITransport
from mongita import MongitaClientMemory

import schemas
from database import QuestionStore, get_store
from main import app


class TickingClock:
    """Deterministic stand-in for schemas.utcnow: each call is one second later."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.now += self.step
        return self.now


@pytest.fixture
def clock(monkeypatch) -> TickingClock:
    """Patch the timestamp source so recency tie-breaks never depend on wall time."""
    ticking = TickingClock()
    monkeypatch.setattr(schemas, "utcnow", ticking)
    return ticking


@pytest.fixture
def collection():
    """Fresh in-memory Mongita collection per test."""
    client = MongitaClientMemory()
    db = client["qa_test"]
    return db[f"question_{uuid4().hex}"]


@pytest.fixture
def store(collection) -> QuestionStore:
    return QuestionStore(collection)


@pytest.fixture
async def client(store, clock) -> AsyncGenerator[AsyncClient, None]:
    """Test client wired to the in-memory store."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
