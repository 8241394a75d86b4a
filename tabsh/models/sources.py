from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import psutil

from tabsh.errors import TabshUserError
from tabsh.models.table import Table
from tabsh.models.values import Integer, Size, Text
from tabsh.schema import DEFAULT_GRAMMAR, Grammar
from tabsh.util import TableSchema

logger = logging.getLogger(__name__)

Producer = Callable[["Source", Dict[str, Any]], Table]

PRODUCER_REGISTRY: Dict[str, Producer] = {}


def register_producer(*names: str) -> Callable[[Producer], Producer]:
    """Decorator to register a table-producing builtin under one or more command names."""

    def deco(fn: Producer) -> Producer:
        for name in names:
            PRODUCER_REGISTRY[name] = fn
        return fn

    return deco


@dataclass(frozen=True)
class PlainOutput:
    """Text output of a command that does not produce a table."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


@dataclass(frozen=True)
class Source:
    """The first command of a pipeline line."""

    command: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    cwd: Optional[str] = None

    @property
    def is_tabular(self) -> bool:
        return self.command in PRODUCER_REGISTRY

    def peek_schema(self, grammar: Grammar = DEFAULT_GRAMMAR) -> TableSchema:
        """Declared columns of this producer (the generic default when unregistered)."""
        return grammar.source_schema(self.command)

    def table(self, options: Optional[Dict[str, Any]] = None) -> Table:
        producer = PRODUCER_REGISTRY.get(self.command)
        if producer is None:
            raise TabshUserError(
                "E_NOT_TABULAR",
                f"'{self.command}' does not produce a table.",
                hint="Table producers: " + ", ".join(sorted(PRODUCER_REGISTRY)),
                stage=self.command,
            )
        return producer(self, dict(options or {}))

    def run_plain(self) -> PlainOutput:
        """Run an external program and capture its output.

        Output that is not valid UTF-8 is decoded with replacement characters.
        """
        try:
            completed = subprocess.run(
                [self.command, *self.args],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError as e:
            raise TabshUserError(
                "E_COMMAND_NOT_FOUND",
                f"{self.command}: command not found.",
                hint="Type 'help' for builtins and table producers.",
                stage=self.command,
            ) from e
        except PermissionError as e:
            raise TabshUserError(
                "E_COMMAND_NOT_FOUND",
                f"{self.command}: permission denied.",
                stage=self.command,
            ) from e
        except OSError as e:
            raise TabshUserError(
                "E_COMMAND_FAILED",
                f"{self.command}: cannot execute: {e.strerror or e}.",
                hint="Check that the file is a program or a script with a #! line.",
                stage=self.command,
            ) from e
        return PlainOutput(completed.stdout, completed.stderr, completed.returncode)

    def __str__(self) -> str:
        return " ".join((self.command, *self.args))


# ---------- table producers ----------

def _format_mtime(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


@register_producer("ls", "dir")
def list_directory(src: Source, options: Dict[str, Any]) -> Table:
    base = Path(src.cwd or os.getcwd())
    target = base / src.args[0] if src.args else base
    if not target.is_dir():
        raise TabshUserError(
            "E_PRODUCER_PATH",
            f"Not a directory: '{target}'.",
            hint="Usage: ls [DIRECTORY]",
            stage=src.command,
        )

    show_hidden = options.get("show_hidden", True)
    table = Table([c.name for c in DEFAULT_GRAMMAR.columns_for("ls")])
    for entry in sorted(target.iterdir(), key=lambda p: p.name.casefold()):
        if not show_hidden and entry.name.startswith("."):
            continue
        try:
            st = entry.stat()
        except OSError as e:
            logger.debug("ls: skipping %s: %s", entry, e)
            continue
        if entry.is_dir():
            size = Size("-", 0)
            kind = "Directory"
        else:
            size = Size.from_bytes(st.st_size)
            kind = "File"
        table.append((Text(entry.name), size, Text(kind), Text(_format_mtime(st.st_mtime))))
    logger.debug("ls %s: %d entries", target, len(table))
    return table


@register_producer("ps")
def list_processes(src: Source, options: Dict[str, Any]) -> Table:
    table = Table([c.name for c in DEFAULT_GRAMMAR.columns_for("ps")])
    for proc in psutil.process_iter(["pid", "name", "memory_info", "num_threads"]):
        info = proc.info
        mem = info.get("memory_info")
        rss = getattr(mem, "rss", 0) if mem is not None else 0
        table.append((
            Integer(int(info.get("pid") or 0)),
            Text(info.get("name") or ""),
            Size.from_bytes(rss),
            Integer(int(info.get("num_threads") or 0)),
        ))
    logger.debug("ps: %d processes", len(table))
    return table
