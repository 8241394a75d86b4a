"""Split a command line into pipeline invocations."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import List, Tuple

from tabsh.errors import TabshUserError


@dataclass(frozen=True)
class Invocation:
    name: str
    args: Tuple[str, ...] = field(default_factory=tuple)


def tokenize(command_line: str) -> List[str]:
    lexer = shlex.shlex(command_line, posix=True, punctuation_chars="|")
    lexer.whitespace_split = True
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise TabshUserError(
            "E_PARSE",
            f"Cannot parse command line: {e}.",
            hint="Check that every quote is closed.",
        ) from e


def split_pipeline(command_line: str) -> List[Invocation]:
    """Invocations of a line in order; an empty line gives an empty list."""
    tokens = tokenize(command_line)
    if not tokens:
        return []

    out: List[Invocation] = []
    current: List[str] = []
    for token in tokens:
        if token == "|":
            out.append(_finalize(current, position=len(out)))
            current = []
        elif token and set(token) == {"|"}:
            # "||" arrives as a single punctuation token
            for _ in token:
                out.append(_finalize(current, position=len(out)))
                current = []
        else:
            current.append(token)
    out.append(_finalize(current, position=len(out)))
    return out


def _finalize(tokens: List[str], *, position: int) -> Invocation:
    if not tokens:
        raise TabshUserError(
            "E_EMPTY_STAGE",
            "Missing command before pipe or end of line." if position == 0
            else f"Empty stage at pipeline position {position + 1}.",
            hint="Example: ls | where Size > 10kb | limit 5",
        )
    return Invocation(tokens[0], tuple(tokens[1:]))
