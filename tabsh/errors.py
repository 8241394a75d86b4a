from __future__ import annotations

from typing import Optional


class TabshUserError(Exception):
    """An instructional error intended for end users.

    Use this for mistakes in a command line (unknown fields, bad stage arguments, etc.).
    It carries a short error code, an optional hint and, when known, the pipeline
    stage that raised it.
    """

    def __init__(self, code: str, message: str, *, hint: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = hint
        self.stage = stage

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.hint:
            return base + f"\nHint: {self.hint}"
        return base
