"""Type-aware ordering of cell values.

Sizes compare by byte count, numbers numerically and text case-insensitively. A text
cell in a Size or Memory column is read as a formatted size.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Tuple

from tabsh.models.values import Float, Integer, Size, Text, Value, extract_bytes

SIZE_SEMANTICS = frozenset({"Size", "Memory"})

OPERATORS: Dict[str, Callable[[int], bool]] = {
    ">": lambda c: c > 0,
    "<": lambda c: c < 0,
    ">=": lambda c: c >= 0,
    "<=": lambda c: c <= 0,
    "==": lambda c: c == 0,
    "!=": lambda c: c != 0,
}


def _sign(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _magnitude(value: Value, semantic: str):
    """Numeric magnitude of a cell, or None when it is plain text."""
    if isinstance(value, Size):
        return value.bytes
    if isinstance(value, (Integer, Float)):
        return value.value
    if isinstance(value, Text) and semantic in SIZE_SEMANTICS:
        return extract_bytes(value.value)
    return None


def compare(a: Value, b: Value, semantic: str = "Generic") -> int:
    """Compare two cells of one column; returns -1, 0 or 1."""
    ma = _magnitude(a, semantic)
    mb = _magnitude(b, semantic)
    if ma is not None and mb is not None:
        return _sign(ma, mb)
    return _sign(a.render().casefold(), b.render().casefold())


def sort_key(value: Value, semantic: str = "Generic") -> Tuple[int, Any]:
    """A key ordering cells the same way ``compare`` does; numbers sort before text."""
    m = _magnitude(value, semantic)
    if m is not None:
        return (0, m)
    return (1, value.render().casefold())


def holds(op: str, cmp: int) -> bool:
    return OPERATORS[op](cmp)
