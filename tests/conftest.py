"""Shared pytest fixtures for honeycomb_client tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from honeycomb_client.config import ClientConfig
from honeycomb_client.transport import TransportResponse

from tests.fixtures.mock_service import MockHoneycombService


@dataclass
class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and only yields."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)

    @property
    def count(self) -> int:
        return len(self.delays)


@dataclass
class ScriptedTransport:
    """Transport answering from a fixed list of responses, last one repeating."""

    responses: list[TransportResponse]
    calls: list[tuple[str, str, Any]] = field(default_factory=list)

    async def send(self, method, path, headers=None, json=None) -> TransportResponse:
        self.calls.append((method, path, json))
        index = min(len(self.calls), len(self.responses)) - 1
        return self.responses[index]


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_config():
    """Factory fixture for ClientConfig with small, test-friendly budgets."""
    def _factory(**kwargs) -> ClientConfig:
        defaults: dict[str, Any] = {
            "api_key": "test-key",
            "api_url": "https://api.honeycomb.io/1/",
            "retry_budget": 12,
            "rate_limit_delay": 5.0,
            "poll_budget": 50,
            "poll_interval": 0.1,
            "concurrency_limit": 3,
        }
        defaults.update(kwargs)
        return ClientConfig(**defaults)
    return _factory


@pytest.fixture
def scripted_transport():
    """Factory fixture for ScriptedTransport instances."""
    def _factory(*responses: TransportResponse) -> ScriptedTransport:
        return ScriptedTransport(list(responses))
    return _factory


@pytest.fixture
def mock_service():
    return MockHoneycombService()
