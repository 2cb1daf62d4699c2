"""Render a row selection as literal text in one of the export formats.

Every format reads cells through ``format_cell`` except SQLite Insert,
which renders typed literals. Lines are joined with ``\\n``.

Formats:
    - Excel: CSV prefixed with a UTF-8 byte order mark
    - CSV / TSV: header line plus one line per row, RFC 4180 style quoting
    - SQLite Insert: one INSERT statement per row
    - JSON Object: the row object for a single row, else rows keyed by
      ``id:<rowid>`` or ``row:<position>``
    - JSON Array: list of row objects
    - HTML: a bare ``<table>``
    - Markdown: pipe table with a ``---`` divider
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence

from db_viewer.domain.entities import ColumnMeta, RowData
from db_viewer.domain.services.query_builder import quote_identifier
from db_viewer.domain.services.value_coercion import format_cell, format_number, to_sql_literal
from db_viewer.domain.value_objects import (
    EXPORT_KEY_ID_PREFIX,
    EXPORT_KEY_ROW_PREFIX,
    ExportFormat,
    ExportPayload,
    SqlValue,
)

UTF8_BOM = "\ufeff"
DEFAULT_TABLE_NAME = "table"


def encode(
    fmt: ExportFormat,
    columns: Sequence[ColumnMeta],
    rows: Sequence[RowData],
    table_name: str = "",
) -> ExportPayload:
    """Render ``rows`` restricted to ``columns`` in the requested format.

    Args:
        fmt: Target format.
        columns: Columns to include, in output order.
        rows: Rows to include, in output order.
        table_name: Target table of SQLite Insert statements.

    Returns:
        The rendered text and the format's file extension.
    """
    names = [column.name for column in columns]
    render = _RENDERERS[fmt]
    text = render(names, rows, table_name or DEFAULT_TABLE_NAME)
    return ExportPayload(text=text, extension=fmt.extension)


def escape_delimited(value: SqlValue, delimiter: str) -> str:
    text = format_cell(value)
    if delimiter in text or "\n" in text or "\r" in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def escape_markdown(text: str) -> str:
    normalized = text.replace("\r\n", "<br>").replace("\n", "<br>")
    return normalized.replace("\\", "\\\\").replace("|", "\\|")


def _row_object(names: Sequence[str], row: RowData) -> dict[str, str]:
    return {name: format_cell(row.get(name)) for name in names}


def _delimited(delimiter: str) -> Callable[[Sequence[str], Sequence[RowData], str], str]:
    def render(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
        header = delimiter.join(escape_delimited(name, delimiter) for name in names)
        lines = [
            delimiter.join(escape_delimited(row.get(name), delimiter) for name in names)
            for row in rows
        ]
        return "\n".join([header, *lines])

    return render


_render_csv = _delimited(",")
_render_tsv = _delimited("\t")


def _render_excel(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
    return UTF8_BOM + _render_csv(names, rows, table_name)


def _render_sqlite_insert(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
    column_list = ", ".join(quote_identifier(name) for name in names)
    target = quote_identifier(table_name)
    statements = []
    for row in rows:
        values = ", ".join(to_sql_literal(row.get(name)) for name in names)
        statements.append(f"INSERT INTO {target} ({column_list}) VALUES ({values});")
    return "\n".join(statements)


def _export_key(row: RowData) -> str:
    if row.native_id is not None:
        return f"{EXPORT_KEY_ID_PREFIX}{format_number(row.native_id)}"
    return f"{EXPORT_KEY_ROW_PREFIX}{row.position}"


def _render_json_object(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
    if len(rows) == 1:
        return json.dumps(_row_object(names, rows[0]), indent=2, ensure_ascii=False)
    keyed = {_export_key(row): _row_object(names, row) for row in rows}
    return json.dumps(keyed, indent=2, ensure_ascii=False)


def _render_json_array(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
    return json.dumps([_row_object(names, row) for row in rows], indent=2, ensure_ascii=False)


def _render_html(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
    header = "".join(f"<th>{escape_html(name)}</th>" for name in names)
    body = "".join(
        "<tr>"
        + "".join(f"<td>{escape_html(format_cell(row.get(name)))}</td>" for name in names)
        + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body}</tbody></table>"


def _render_markdown(names: Sequence[str], rows: Sequence[RowData], table_name: str) -> str:
    header = "| " + " | ".join(escape_markdown(name) for name in names) + " |"
    divider = "| " + " | ".join("---" for _ in names) + " |"
    body = [
        "| " + " | ".join(escape_markdown(format_cell(row.get(name))) for name in names) + " |"
        for row in rows
    ]
    return "\n".join([header, divider, *body])


_RENDERERS: dict[ExportFormat, Callable[[Sequence[str], Sequence[RowData], str], str]] = {
    ExportFormat.EXCEL: _render_excel,
    ExportFormat.CSV: _render_csv,
    ExportFormat.TSV: _render_tsv,
    ExportFormat.SQLITE_INSERT: _render_sqlite_insert,
    ExportFormat.JSON_OBJECT: _render_json_object,
    ExportFormat.JSON_ARRAY: _render_json_array,
    ExportFormat.HTML: _render_html,
    ExportFormat.MARKDOWN: _render_markdown,
}
