import asyncio
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from healthchat.config import Settings
from healthchat.llm.providers import Completion, CompletionProvider
from healthchat.main import app, get_provider, get_settings, get_store
from healthchat.sessions import SessionStore


class FakeProvider(CompletionProvider):
    """Records every message list it receives and answers from a script."""

    name = "fake"

    def __init__(self, reply: str = "Try a consistent bedtime.",
                 error: Optional[Exception] = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: List[List[Dict[str, str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def invoke(self, messages: Sequence[Dict[str, str]]) -> Completion:
        self.calls.append([dict(m) for m in messages])
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        if self.error is not None:
            raise self.error
        return Completion(content=self.reply)


@pytest.fixture
def store():
    """Fresh transcript store per test"""
    return SessionStore()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def client(store, provider, settings):
    """TestClient wired to the per-test store, provider and settings"""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_provider] = lambda: provider
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
