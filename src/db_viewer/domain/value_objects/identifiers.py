"""Identifiers and primitive aliases shared across the viewer.

These value objects keep raw integers and strings that mean different things
(save correlation ids, row keys) from being mixed up.
"""

from __future__ import annotations

from typing import NewType, Union


SqlValue = Union[None, str, int, float, bytes]
"""A single cell value as the engine hands it out."""

SaveId = NewType("SaveId", int)
"""Correlation id of a save request. Strictly increasing per document session."""

RowKey = NewType("RowKey", str)
"""Session-local row identity: ``id:<rowid>`` or ``pos:<position>``."""

INVALID_SAVE_ID = SaveId(0)

# Alias under which the native row identifier is projected in row fetches.
ROW_ID_ALIAS = "__rowid__"

ROW_KEY_ID_PREFIX = "id:"
ROW_KEY_POSITION_PREFIX = "pos:"

# Keys used by the JSON Object export.
EXPORT_KEY_ID_PREFIX = "id:"
EXPORT_KEY_ROW_PREFIX = "row:"
