"""File-backed storage owner for one database document.

The host owns the document file and answers the session side of the byte
transport protocol:

    ready        -> config (first time only), then load with the file bytes
    refresh      -> load with the file re-read from disk
    save         -> write the bytes, reply save:result with the same saveId
    export:save  -> write the text next to the document, reply export:result
    log / error  -> structured log

Saved bytes are also kept as ``pending_bytes``. A later ``ready`` is served
from them without reading the file back; ``refresh`` always re-reads it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel

from db_viewer import __version__
from db_viewer.adapters.inbound.messages import (
    ConfigMessage,
    ErrorMessage,
    ExportResultMessage,
    ExportSaveMessage,
    LoadMessage,
    LogMessage,
    ReadyMessage,
    RefreshMessage,
    SaveMessage,
    SaveResultMessage,
    normalize_bytes,
    parse_session_message,
    to_wire,
)
from db_viewer.infrastructure.logging import get_logger
from db_viewer.ports.inbound import LoadError, SaveError
from db_viewer.ports.outbound import MessageSink

logger = get_logger(__name__)

DATABASE_SUFFIXES = (".db", ".sqlite", ".sqlite3")
DEFAULT_DISPLAY_NAME = "SQLite DB Viewer"
DEFAULT_EXPORT_NAME = "export.txt"


def is_database_file(path: str | Path) -> bool:
    """Whether the path names a database document, by extension."""
    return Path(path).suffix.lower() in DATABASE_SUFFIXES


class FileDocumentHost:
    """Answers one session's protocol messages against a file on disk.

    Attributes:
        path: The database document.
        pending_bytes: Bytes of the last successful save, if any.
    """

    def __init__(
        self,
        path: str | Path,
        display_name: str = DEFAULT_DISPLAY_NAME,
        version: str = __version__,
        sink: MessageSink | None = None,
    ) -> None:
        self._path = Path(path)
        self._display_name = display_name
        self._version = version
        self._sink = sink
        self._config_sent = False
        self.pending_bytes: bytes | None = None

    @property
    def path(self) -> Path:
        return self._path

    def attach(self, sink: MessageSink) -> None:
        """Set the channel towards the session."""
        self._sink = sink

    def handle_message(self, message: Any) -> None:
        parsed = parse_session_message(message)
        if parsed is None:
            return
        if isinstance(parsed, ReadyMessage):
            self._on_ready()
        elif isinstance(parsed, RefreshMessage):
            self._send_document()
        elif isinstance(parsed, SaveMessage):
            self._on_save(parsed)
        elif isinstance(parsed, ExportSaveMessage):
            self._on_export(parsed)
        elif isinstance(parsed, LogMessage):
            logger.info("viewer_log", message=parsed.message)
        elif isinstance(parsed, ErrorMessage):
            logger.error(
                "viewer_error",
                message=parsed.message,
                source=parsed.source,
                line=parsed.line,
                column=parsed.column,
                stack=parsed.stack,
            )

    def _post(self, message: BaseModel) -> None:
        if self._sink is None:
            logger.warning("host_not_attached", message_type=getattr(message, "type", None))
            return
        self._sink.post(to_wire(message))

    def _read_document(self) -> bytes:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            logger.info("document_missing", path=str(self._path))
            return b""

    def _on_ready(self) -> None:
        if not self._config_sent:
            self._config_sent = True
            self._post(ConfigMessage(display_name=self._display_name, version=self._version))
        self._send_document(cached=True)

    def _send_document(self, cached: bool = False) -> None:
        if cached and self.pending_bytes is not None:
            data = self.pending_bytes
        else:
            data = self._read_document()
        logger.info("document_sent", path=str(self._path), size=len(data), cached=cached)
        self._post(LoadMessage(name=self._path.name, data=data))

    def _write_document(self, raw: Any) -> bytes:
        """Persist a save payload.

        Raises:
            SaveError: If the payload is not bytes or the file cannot be written.
        """
        try:
            data = normalize_bytes(raw)
        except LoadError as e:
            raise SaveError("save received invalid bytes") from e
        try:
            self._path.write_bytes(data)
        except OSError as e:
            raise SaveError(str(e)) from e
        return data

    def _on_save(self, message: SaveMessage) -> None:
        try:
            data = self._write_document(message.data)
        except SaveError as e:
            logger.error("save_failed", path=str(self._path), save_id=message.save_id, error=str(e))
            self._post(SaveResultMessage(ok=False, message=str(e), save_id=message.save_id))
            return

        self.pending_bytes = data
        logger.info("document_saved", path=str(self._path), size=len(data), save_id=message.save_id)
        self._post(SaveResultMessage(ok=True, message="Saved", save_id=message.save_id))

    def _on_export(self, message: ExportSaveMessage) -> None:
        if not message.text:
            self._post(ExportResultMessage(ok=False, message="Nothing to save."))
            return

        # Only the file name is honored; exports always land beside the document.
        name = Path(message.name or DEFAULT_EXPORT_NAME).name or DEFAULT_EXPORT_NAME
        target = self._path.parent / name
        try:
            target.write_text(message.text, encoding="utf-8")
        except OSError as e:
            logger.error("export_write_failed", path=str(target), error=str(e))
            self._post(ExportResultMessage(ok=False, message=str(e)))
            return

        logger.info("export_written", path=str(target), size=len(message.text))
        self._post(ExportResultMessage(ok=True, message=f"Saved to {target}"))
