"""
Shared fixtures: controllable clock, recording sleep, scripted provider.
"""

import asyncio
import os
import tempfile
from typing import Any, Dict, List, Optional, Sequence

# Keep the shared log sink out of the working tree
os.environ.setdefault(
    "TALENTRANK_LOG_FILE", os.path.join(tempfile.gettempdir(), "talentrank-tests.log")
)

import pytest  # noqa: E402

from talentrank.core.secure_config import Settings  # noqa: E402

_ENV_VARS = (
    "TALENTRANK_API_TOKEN",
    "TALENTRANK_BASE_URL",
    "TALENTRANK_EMBEDDING_MODEL",
    "TALENTRANK_CHAT_MODEL",
    "TALENTRANK_LOG_LEVEL",
)


class FakeClock:
    """Callable clock in seconds, moved by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeProviderClient:
    """
    Stand-in for ModelsApiClient.

    Scripted items are consumed in order; an exception item is raised,
    anything else is returned. Without a script, embeddings come from
    ``vectors`` (by text) or a unit vector, completions return "ok".
    """

    def __init__(self, dimensions: int = 3):
        self.dimensions = dimensions
        self.embed_script: List[Any] = []
        self.complete_script: List[Any] = []
        self.vectors: Dict[str, Sequence[float]] = {}
        self.embed_calls: List[tuple] = []
        self.complete_calls: List[dict] = []
        self.healthy = True
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    async def embed(self, text: str, model: str) -> List[float]:
        self.embed_calls.append((text, model))
        if self.gate is not None:
            await self.gate.wait()
        if self.embed_script:
            item = self.embed_script.pop(0)
            if isinstance(item, BaseException):
                raise item
            return list(item)
        if text in self.vectors:
            return list(self.vectors[text])
        return [1.0] + [0.0] * (self.dimensions - 1)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        model: str,
        max_tokens: int = 1500,
        temperature: float = 0.3,
    ) -> str:
        self.complete_calls.append(
            {
                "messages": messages,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.complete_script:
            item = self.complete_script.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        return "ok"

    async def check_health(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_client() -> FakeProviderClient:
    return FakeProviderClient()


@pytest.fixture
def make_settings(tmp_path):
    """Settings isolated from any .talentrank in the working directory."""

    def _make(overrides: Optional[Dict[str, Any]] = None) -> Settings:
        return Settings(overrides=overrides, config_path=tmp_path / "missing.talentrank")

    return _make
