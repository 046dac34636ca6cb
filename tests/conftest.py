"""
Shared fixtures: a scripted search client and a recording sleep.
"""

from typing import List, Sequence, Union

import pytest

from extraction.client import SearchModelClient
from portfolio_radar.config import Settings, reset_settings

_ENV_KEYS = [
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "SEARCH_MODEL",
    "SEARCH_ENABLED",
    "LOG_LEVEL",
    "LOG_FILE",
    "DEV_MODE",
    "STOCKS_BATCH_SIZE",
    "STOCKS_BATCH_DELAY",
    "DIVIDENDS_BATCH_SIZE",
    "DIVIDENDS_BATCH_DELAY",
    "HEALTH_BATCH_SIZE",
    "HEALTH_BATCH_DELAY",
    "PORTFOLIO_BATCH_SIZE",
    "PORTFOLIO_BATCH_DELAY",
    "VISION_MODEL",
]


class FakeSearchClient(SearchModelClient):
    """Returns (or raises) one scripted item per call, then empty output."""

    def __init__(self, responses: Sequence[Union[str, Exception]] = ()):
        self.model = "fake-model"
        self.search_enabled = True
        self.responses = list(responses)
        self.prompts: List[str] = []
        self.events: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.events.append("generate")
        index = len(self.prompts) - 1
        item = self.responses[index] if index < len(self.responses) else ""
        if isinstance(item, Exception):
            raise item
        return item


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self, events: List[str] = None):
        self.delays: List[float] = []
        self.events = events

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.events is not None:
            self.events.append("sleep")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from the developer's environment and cached settings."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def fake_client():
    return FakeSearchClient()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
