"""Integration tests: session and file owner wired through asyncio channels."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any

import pytest

from db_viewer.adapters.outbound import AsyncioChannel, AsyncioTimerScheduler, FileDocumentHost
from db_viewer.application import DocumentSession
from db_viewer.domain.value_objects import ExportFormat, LoadStatus
from db_viewer.infrastructure.config import Config, SyncConfig
from db_viewer.infrastructure.metrics import MetricsRegistry


async def settle(rounds: int = 10) -> None:
    """Let every queued channel delivery run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def count_rows(path: Path, table: str) -> int:
    conn = sqlite3.connect(path)
    try:
        return conn.execute(f'SELECT count(*) FROM "{table}"').fetchone()[0]
    finally:
        conn.close()


class SilentOwner:
    """An owner that never answers."""

    def __init__(self) -> None:
        self.received: list[Any] = []

    def handle_message(self, message: Any) -> None:
        self.received.append(message)


def wire(path: Path, config: Config, metrics: MetricsRegistry) -> tuple[FileDocumentHost, DocumentSession]:
    host = FileDocumentHost(path)
    session = DocumentSession(sink=AsyncioChannel(host), config=config, metrics=metrics)
    host.attach(AsyncioChannel(session))
    return host, session


@pytest.mark.integration
class TestAsyncioWiring:
    """End-to-end round trips on a real event loop."""

    def test_start_loads_document(
        self, sample_db_path: Path, test_config: Config, metrics_registry: MetricsRegistry
    ) -> None:
        """ready -> config + load, all through the loop."""

        async def scenario() -> None:
            _, session = wire(sample_db_path, test_config, metrics_registry)
            session.start()
            assert session.load_status is LoadStatus.EMPTY

            await settle()

            assert session.load_status is LoadStatus.READY
            assert session.display_name == "SQLite DB Viewer"
            assert session.document_name == "sample.db"
            assert session.view().row_count == 3
            session.close()

        asyncio.run(scenario())

    def test_edit_is_saved_to_disk(
        self, sample_db_path: Path, test_config: Config, metrics_registry: MetricsRegistry
    ) -> None:
        async def scenario() -> None:
            host, session = wire(sample_db_path, test_config, metrics_registry)
            session.start()
            await settle()

            session.delete_row("id:1")
            assert session.status_message == "Saving..."
            await settle()

            assert session.status_message == "Saved"
            assert host.pending_bytes is not None
            assert count_rows(sample_db_path, "authors") == 2
            session.close()

        asyncio.run(scenario())

    def test_refresh_picks_up_external_changes(
        self, sample_db_path: Path, test_config: Config, metrics_registry: MetricsRegistry
    ) -> None:
        async def scenario() -> None:
            _, session = wire(sample_db_path, test_config, metrics_registry)
            session.start()
            await settle()

            conn = sqlite3.connect(sample_db_path)
            conn.execute("INSERT INTO authors (name, born) VALUES ('Jemisin', 1972)")
            conn.commit()
            conn.close()

            session.refresh()
            await settle()

            assert session.view().row_count == 4
            session.close()

        asyncio.run(scenario())

    def test_export_saved_beside_document(
        self, sample_db_path: Path, test_config: Config, metrics_registry: MetricsRegistry
    ) -> None:
        async def scenario() -> None:
            _, session = wire(sample_db_path, test_config, metrics_registry)
            session.start()
            await settle()

            name = session.save_export(ExportFormat.HTML)
            await settle()

            target = sample_db_path.parent / "authors.html"
            assert name == "authors.html"
            assert target.read_text(encoding="utf-8").startswith("<table>")
            assert session.status_message == f"Saved to {target}"
            session.close()

        asyncio.run(scenario())

    def test_unanswered_save_times_out(self, sample_db_bytes: bytes, metrics_registry: MetricsRegistry) -> None:
        config = Config(sync=SyncConfig(save_timeout_seconds=0.05, status_clear_seconds=5.0))

        async def scenario() -> None:
            owner = SilentOwner()
            session = DocumentSession(sink=AsyncioChannel(owner), config=config, metrics=metrics_registry)
            session.load("sample.db", sample_db_bytes)

            session.delete_row("id:2")
            await asyncio.sleep(0.2)

            assert [m["type"] for m in owner.received] == ["log", "log", "save"]
            assert session.status_message == "Save timed out."
            session.close()

        asyncio.run(scenario())


@pytest.mark.integration
class TestAsyncioTimerScheduler:
    """Tests for the loop-backed timer adapter."""

    def test_fires_and_cancels(self) -> None:
        async def scenario() -> list[str]:
            fired: list[str] = []
            timers = AsyncioTimerScheduler()
            timers.call_later(0.01, lambda: fired.append("kept"))
            cancelled = timers.call_later(0.01, lambda: fired.append("cancelled"))
            cancelled.cancel()
            await asyncio.sleep(0.05)
            return fired

        assert asyncio.run(scenario()) == ["kept"]

    def test_channel_delivers_in_order(self) -> None:
        async def scenario() -> tuple[list[Any], int]:
            owner = SilentOwner()
            channel = AsyncioChannel(owner)
            for i in range(3):
                channel.post({"n": i})
            assert owner.received == []
            await settle()
            return owner.received, channel.posted

        received, posted = asyncio.run(scenario())
        assert received == [{"n": 0}, {"n": 1}, {"n": 2}]
        assert posted == 3
