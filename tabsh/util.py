from __future__ import annotations

import difflib
from typing import Optional, Dict, Any, Sequence

TableSchema = Dict[str, Any]

GENERIC_TYPE = "Generic"


def _schema_field_type(schema: Optional[TableSchema], name: str) -> str:
    """Semantic type of a column in a running schema (case-insensitive lookup).

    Columns the schema does not describe are Generic.
    """
    if not schema or not isinstance(schema, dict):
        return GENERIC_TYPE
    want = name.casefold()
    for f in schema.get("fields") or []:
        if isinstance(f, dict) and isinstance(f.get("name"), str) and f["name"].casefold() == want:
            return f.get("type") or GENERIC_TYPE
    return GENERIC_TYPE


def _suggest(name: str, candidates: Sequence[str]) -> str:
    matches = difflib.get_close_matches(name, list(candidates), n=3, cutoff=0.6)
    if not matches:
        lowered = {c.casefold(): c for c in candidates}
        hit = difflib.get_close_matches(name.casefold(), list(lowered), n=1, cutoff=0.6)
        matches = [lowered[h] for h in hit]
    if matches:
        return f"Did you mean {matches[0]!r}?"
    return "Available: " + ", ".join(candidates)
