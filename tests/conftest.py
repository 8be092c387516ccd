"""
Configuration des tests pytest.
"""
import os
import sys
from typing import Callable, List, Mapping, Optional

import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from relay_proxy.config.loader import _clear_config_cache  # noqa: E402
from relay_proxy.config.settings import Settings  # noqa: E402


class RecordingTransport:
    """Transport SSE en mémoire qui enregistre chaque appel."""

    def __init__(self, accept_writes: Optional[int] = None):
        self.status_code = None
        self.headers = {}
        self.writes: List[bytes] = []
        self.write_calls = 0
        self.ended = 0
        self.accept_writes = accept_writes
        self._close_callbacks: List[Callable[[], None]] = []

    def write_head(self, status_code: int, headers: Mapping[str, str]) -> None:
        if self.status_code is not None:
            raise RuntimeError("headers already sent")
        self.status_code = status_code
        self.headers = dict(headers)

    def write(self, data: bytes) -> bool:
        self.write_calls += 1
        if self.accept_writes is not None and self.write_calls > self.accept_writes:
            return False
        self.writes.append(data)
        return True

    def end(self) -> None:
        self.ended += 1

    def on_close(self, callback: Callable[[], None]) -> None:
        self._close_callbacks.append(callback)

    def disconnect(self) -> None:
        """Simule le départ du client."""
        for callback in self._close_callbacks:
            callback()

    @property
    def body(self) -> str:
        return b"".join(self.writes).decode("utf-8")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def recording_transport():
    return RecordingTransport()


@pytest.fixture(autouse=True)
def clear_config_cache():
    _clear_config_cache()
    yield
    _clear_config_cache()


@pytest.fixture
def test_config():
    """Fixture pour la configuration de test."""
    return {
        "server": {"keepalive_interval_ms": 15000},
        "providers": {
            "test": {
                "type": "openai",
                "base_url": "http://upstream.test/v1/",
                "api_key": "test-key"
            },
            "nokey": {
                "type": "openai",
                "base_url": "http://nokey.test/v1"
            }
        },
        "models": {
            "small": {"provider": "test", "model": "small-upstream"},
            "medium": {"provider": "test"},
            "large": {"provider": "test", "model": "large-upstream"},
            "orphan": {"provider": "missing"},
            "free": {"provider": "nokey"}
        },
        "routing": {
            "complexity": {
                "enabled": True,
                "simple": "small",
                "moderate": "medium",
                "complex": "large"
            }
        },
        "mesh": {"enabled": False}
    }


@pytest.fixture
def test_settings(test_config):
    return Settings.from_config(test_config)


@pytest.fixture
def make_transport():
    """Fabrique de RecordingTransport (ex: accept_writes=1)."""
    return RecordingTransport
