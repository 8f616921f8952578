from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from tasklist.controller import TaskController, get_controller  # noqa: E402
from tasklist.main import app  # noqa: E402
from tasklist.storage import InMemoryStorage  # noqa: E402
from tasklist.store import TaskStore, get_task_store  # noqa: E402


class FakeClock:
    """
    Deterministic clock for tests.

    Starts at a fixed UTC moment; advance() moves it forward.
    """

    def __init__(self, start: datetime = datetime(2025, 1, 31, 9, 30, tzinfo=timezone.utc)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def store(storage: InMemoryStorage, clock: FakeClock) -> TaskStore:
    return TaskStore(storage, clock=clock)


@pytest.fixture()
def controller(store: TaskStore) -> TaskController:
    return TaskController(store)


@pytest.fixture()
def client(store: TaskStore, controller: TaskController) -> Iterator[TestClient]:
    """
    API client wired to the per-test store and controller through dependency overrides.
    """
    app.dependency_overrides[get_task_store] = lambda: store
    app.dependency_overrides[get_controller] = lambda: controller
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
