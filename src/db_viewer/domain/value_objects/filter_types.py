"""Filter inputs and the parameterized clause built from them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from db_viewer.domain.value_objects.identifiers import SqlValue


class FilterMode(Enum):
    """Per-column filter switches. Each one toggles independently."""

    EXACT = "exact"
    NON_EMPTY = "non_empty"
    INVERT = "invert"


@dataclass(frozen=True, slots=True)
class ColumnFilterMode:
    """Active filter switches for one column.

    Attributes:
        exact: Compare the filter text for equality instead of substring.
        non_empty: Require the cell to be neither NULL nor empty text.
        invert: Negate the combined condition of the column.
    """

    exact: bool = False
    non_empty: bool = False
    invert: bool = False

    def toggled(self, mode: FilterMode) -> ColumnFilterMode:
        """Return a copy with one switch flipped."""
        name = mode.value
        return replace(self, **{name: not getattr(self, name)})

    def is_active(self) -> bool:
        return self.exact or self.non_empty or self.invert


@dataclass(frozen=True, slots=True)
class FilterClause:
    """A WHERE clause with positional parameters in clause order.

    An empty clause means the query is unfiltered.
    """

    clause: str = ""
    params: tuple[SqlValue, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.clause


UNFILTERED = FilterClause()
