"""Export formats and their payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ExportFormat(Enum):
    """Text formats a row selection can be rendered to.

    The value is the user-facing label; ``extension`` is the suggested file
    extension for a saved export.
    """

    EXCEL = "Excel"
    CSV = "CSV"
    TSV = "TSV"
    SQLITE_INSERT = "SQLite Insert"
    JSON_OBJECT = "JSON Object"
    JSON_ARRAY = "JSON Array"
    HTML = "HTML"
    MARKDOWN = "Markdown"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def from_label(cls, label: str) -> ExportFormat:
        """Look a format up by its label.

        Raises:
            ValueError: If no format carries that label.
        """
        for fmt in cls:
            if fmt.value == label:
                return fmt
        raise ValueError(f"Unknown export format: {label!r}")


_EXTENSIONS = {
    ExportFormat.EXCEL: "csv",
    ExportFormat.CSV: "csv",
    ExportFormat.TSV: "tsv",
    ExportFormat.SQLITE_INSERT: "sql",
    ExportFormat.JSON_OBJECT: "json",
    ExportFormat.JSON_ARRAY: "json",
    ExportFormat.HTML: "html",
    ExportFormat.MARKDOWN: "md",
}


@dataclass(frozen=True, slots=True)
class ExportPayload:
    """Rendered export text and the extension suggested for saving it."""

    text: str
    extension: str
