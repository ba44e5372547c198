"""Shared fixtures for feedback bot tests."""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

# settings reads the environment at import time
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("WEBAPP_URL", "https://miniapp.example.com/")
os.environ.setdefault("API_BASE_URL", "https://api.example.com/api")
os.environ.setdefault("API_EMAIL", "bot@example.com")
os.environ.setdefault("API_PASSWORD", "secret")
os.environ.setdefault("API_FEEDBACK_EMAIL", "feedback@example.com")

from feedback_bot.models import FeedbackAuthor, RefreshedAccess, TokenPair  # noqa: E402


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    """BackendClient double with counters for each endpoint."""
    mock = Mock()
    mock.issue_token = AsyncMock(side_effect=[TokenPair(access=f"access-{i}", refresh=f"refresh-{i}") for i in range(1, 20)])
    mock.refresh_token = AsyncMock(side_effect=[RefreshedAccess(access=f"refreshed-{i}") for i in range(1, 20)])
    mock.send_email = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def author():
    return FeedbackAuthor(id=42, first_name="Ada", last_name="Lovelace", username="ada")


@pytest.fixture
def bot():
    """Telegram Bot double whose send_message hands out increasing message ids."""
    counter = {"next": 100}

    async def _send_message(**kwargs):
        counter["next"] += 1
        return SimpleNamespace(message_id=counter["next"], chat_id=kwargs.get("chat_id"))

    mock = Mock()
    mock.send_message = AsyncMock(side_effect=_send_message)
    mock.delete_message = AsyncMock(return_value=True)
    return mock
