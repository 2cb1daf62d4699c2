"""Pytest configuration and fixtures for db_viewer tests."""

from __future__ import annotations

import sqlite3
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import pytest
from prometheus_client import CollectorRegistry

from db_viewer.infrastructure.config import Config, ExportConfig, SyncConfig, ViewConfig
from db_viewer.infrastructure.container import Container, reset_container
from db_viewer.infrastructure.metrics import MetricsRegistry


SAMPLE_SCHEMA = """
CREATE TABLE authors (id INTEGER PRIMARY KEY, name TEXT, born INTEGER);
INSERT INTO authors (id, name, born) VALUES (1, 'Tolkien', 1892);
INSERT INTO authors (id, name, born) VALUES (2, 'Le Guin', 1929);
INSERT INTO authors (id, name, born) VALUES (3, 'Pratchett', 1948);

CREATE TABLE numbers (n INTEGER, label TEXT);

CREATE TABLE tags (tag TEXT PRIMARY KEY, weight INTEGER) WITHOUT ROWID;
INSERT INTO tags (tag, weight) VALUES ('alpha', 1);
INSERT INTO tags (tag, weight) VALUES ('beta', 2);
INSERT INTO tags (tag, weight) VALUES ('gamma', 3);
"""


def build_database(path: Path, script: str = SAMPLE_SCHEMA) -> bytes:
    """Create a database file from a SQL script and return its bytes."""
    conn = sqlite3.connect(path)
    try:
        conn.executescript(script)
        if "CREATE TABLE numbers" in script:
            conn.executemany(
                "INSERT INTO numbers (n, label) VALUES (?, ?)",
                [(n, None if n % 10 == 0 else f"item-{n}") for n in range(1, 121)],
            )
        conn.commit()
    finally:
        conn.close()
    return path.read_bytes()


class ManualTimer:
    """Timer handle driven by ManualTimerScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerScheduler:
    """TimerScheduler whose clock only moves when a test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in due order."""
        self.now += seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= self.now]
            if not due:
                return
            timer = min(due, key=lambda t: t.due)
            self._timers.remove(timer)
            timer.callback()


class RecordingSink:
    """MessageSink that keeps every posted message."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    def post(self, message: Any) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m.get("type") == message_type]

    def last(self, message_type: str) -> dict[str, Any]:
        matches = self.of_type(message_type)
        assert matches, f"no {message_type!r} message was posted"
        return matches[-1]

    def clear(self) -> None:
        self.messages.clear()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with a temporary export directory."""
    return Config(
        sync=SyncConfig(save_timeout_seconds=6.0, status_clear_seconds=4.0),
        view=ViewConfig(default_page_size=50),
        export=ExportConfig(output_dir=temp_dir / "exports"),
    )


@pytest.fixture
def container() -> Generator[Container, None, None]:
    """Provide a fresh DI container for each test."""
    reset_container()
    c = Container()
    yield c
    c.clear()


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def timers() -> ManualTimerScheduler:
    return ManualTimerScheduler()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sample_db_path(temp_dir: Path) -> Path:
    """A sample database file: authors, numbers (120 rows) and a WITHOUT ROWID table."""
    path = temp_dir / "sample.db"
    build_database(path)
    return path


@pytest.fixture
def sample_db_bytes(sample_db_path: Path) -> bytes:
    return sample_db_path.read_bytes()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
