"""Cell values for structured tables and the human-readable size codec.

A cell is exactly one of ``Text``, ``Integer``, ``Float`` or ``Size``. The variant is
chosen by the producing command when it builds a row and is never converted afterwards.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Union

_UNIT_FACTORS: Dict[str, int] = {
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "m": 1024 ** 2,
    "mb": 1024 ** 2,
    "g": 1024 ** 3,
    "gb": 1024 ** 3,
}

# units written by format_size, largest last
_DISPLAY_UNITS = ("B", "KB", "MB", "GB")

_re_leading_number = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class Text:
    value: str

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class Integer:
    value: int

    def render(self) -> str:
        return "%d" % self.value


@dataclass(frozen=True)
class Float:
    value: float

    def render(self) -> str:
        return "%.2f" % self.value


@dataclass(frozen=True)
class Size:
    """A byte count together with its human-readable display text."""

    display: str
    bytes: int

    @classmethod
    def parse(cls, text: str) -> "Size":
        return cls(text, extract_bytes(text))

    @classmethod
    def from_bytes(cls, num_bytes: int) -> "Size":
        return cls(format_size(num_bytes), int(num_bytes))

    def render(self) -> str:
        return self.display


Value = Union[Text, Integer, Float, Size]
VALUE_TYPES = (Text, Integer, Float, Size)


def _to_int(magnitude: float) -> int:
    try:
        return int(magnitude)
    except (OverflowError, ValueError):
        return 0


def parse_size(text: str) -> int:
    """Parse a human-readable size such as ``"10kb"`` or ``"2.5 MB"`` into bytes.

    Units are case-insensitive and may be separated from the number by whitespace.
    Without a recognized unit the bare number is used (truncated toward zero).
    Input without a leading number gives 0; this function never raises.
    """
    if not isinstance(text, str):
        return 0
    m = _re_leading_number.match(text)
    if not m:
        return 0
    try:
        magnitude = float(m.group(1))
    except ValueError:
        return 0

    rest = text[m.end():].strip().lower()
    factor = _UNIT_FACTORS.get(rest)
    if factor is None and rest:
        first = rest.split()[0]
        factor = _UNIT_FACTORS.get(first)
    if factor is None:
        factor = 1
    return _to_int(magnitude * factor)


def extract_bytes(value: Union[str, Size]) -> int:
    """Byte count of a formatted size (``"10.50 MB"``), falling back to parse_size."""
    if isinstance(value, Size):
        return value.bytes
    parts = value.split() if isinstance(value, str) else []
    if len(parts) >= 2:
        factor = _UNIT_FACTORS.get(parts[1].lower())
        if factor is not None and parts[1].lower() in ("b", "kb", "mb", "gb"):
            try:
                return _to_int(float(parts[0]) * factor)
            except ValueError:
                pass
    return parse_size(value) if isinstance(value, str) else 0


def format_size(num_bytes: int) -> str:
    magnitude = float(num_bytes)
    unit = _DISPLAY_UNITS[0]
    for candidate in _DISPLAY_UNITS[1:]:
        if abs(magnitude) < 1024:
            break
        magnitude /= 1024
        unit = candidate
    return f"{magnitude:.2f} {unit}"
