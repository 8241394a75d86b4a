from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence, Tuple

import petl as etl

from tabsh.errors import TabshUserError
from tabsh.models.values import VALUE_TYPES, Value
from tabsh.util import _suggest

Row = Tuple[Value, ...]


class Table:
    """Ordered columns plus ordered rows of typed cells.

    A Table is built by a producer (or a filter stage) starting from zero rows and
    appending one row at a time. Stages never mutate a Table they receive; they build a
    new one. Rows are stored as tuples so nothing handed out can alter the cells.
    """

    __slots__ = ("_columns", "_rows")

    def __init__(self, columns: Sequence[str]):
        self._columns: Tuple[str, ...] = tuple(columns)
        self._rows: List[Row] = []

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def rows(self) -> Tuple[Row, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(tuple(self._rows))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self._columns == other._columns and self._rows == other._rows

    def __repr__(self) -> str:
        return f"Table(columns={list(self._columns)!r}, rows={len(self._rows)})"

    def append(self, row: Iterable[Value]) -> None:
        cells = tuple(row)
        if len(cells) != len(self._columns):
            raise TabshUserError(
                "E_ROW_WIDTH",
                f"Row has {len(cells)} cell(s) but the table has {len(self._columns)} column(s).",
                hint="Columns: " + ", ".join(self._columns),
            )
        for cell in cells:
            if not isinstance(cell, VALUE_TYPES):
                raise TabshUserError(
                    "E_ROW_VALUE",
                    f"Table cells must be Text, Integer, Float or Size values, got {type(cell).__name__}.",
                )
        self._rows.append(cells)

    def index_of(self, field: str) -> int:
        """Position of a column, matched case-insensitively (first match wins)."""
        want = field.casefold()
        for i, name in enumerate(self._columns):
            if name.casefold() == want:
                return i
        raise TabshUserError(
            "E_UNKNOWN_FIELD",
            f"Unknown field {field!r}.",
            hint=_suggest(field, self._columns),
        )

    # ---------- PETL bridge ----------
    def to_petl(self):
        """A PETL view over this table's rows (header first)."""
        return etl.wrap([self._columns, *self._rows])

    @classmethod
    def from_petl(cls, tbl) -> "Table":
        """Materialize a PETL view into a new, independently owned Table."""
        it = iter(tbl)
        try:
            header = next(it)
        except StopIteration:
            return cls(())
        out = cls(header)
        for rec in it:
            out.append(tuple(rec))
        return out
