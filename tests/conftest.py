"""Shared test fixtures for rbacsync tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from rbacsync.contracts.cancellation import CancelToken


@pytest.fixture
def cancel() -> CancelToken:
    return CancelToken()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    """Keep the developer's environment and home config out of every test."""
    for name in (
        "RBACSYNC_API_ENDPOINT",
        "RBACSYNC_API_TOKEN",
        "RBACSYNC_LOG_LEVEL",
        "RBACSYNC_CONFIRM",
        "RBACSYNC_MAX_RETRIES",
        "REPLICATED_API_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """CLI runs call ``logging.basicConfig(force=True)``; undo it after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
