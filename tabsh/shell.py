"""Interactive shell front end: builtins plus structured pipelines."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from tabsh.config import ShellConfig
from tabsh.errors import TabshUserError
from tabsh.models.pipeline import Pipeline
from tabsh.models.sinks import Sink
from tabsh.models.sources import PRODUCER_REGISTRY
from tabsh.parser import split_pipeline
from tabsh.schema import DEFAULT_GRAMMAR, Grammar

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    exit_requested: bool = False


def format_error(err: TabshUserError) -> str:
    where = f"{err.stage}: " if err.stage else ""
    return f"tabsh: {where}{err}\n"


class Shell:
    """Runs one command line at a time; errors are reported, never raised."""

    def __init__(self, config: Optional[ShellConfig] = None, *, cwd: Optional[str] = None,
                 grammar: Grammar = DEFAULT_GRAMMAR) -> None:
        self.config = config or ShellConfig()
        self.cwd = str(Path(cwd or os.getcwd()).resolve())
        self.grammar = grammar
        self.sink = Sink(padding=self.config.padding, empty_notice=self.config.empty_notice)
        self._builtins: Dict[str, Callable[[List[str]], CommandResult]] = {
            "cd": self._cd,
            "pwd": self._pwd,
            "help": self._help,
            "exit": self._exit,
            "quit": self._exit,
        }

    @property
    def builtin_names(self) -> List[str]:
        return sorted(self._builtins)

    def prompt(self) -> str:
        return self.config.prompt.format(cwd=self.cwd)

    def exec(self, line: str) -> CommandResult:
        try:
            return self._exec(line)
        except TabshUserError as e:
            logger.debug("command failed: %s", e)
            code = 127 if e.code == "E_COMMAND_NOT_FOUND" else 1
            return CommandResult(stderr=format_error(e), exit_code=code)
        except Exception as e:
            # the shell outlives any single command
            logger.exception("unexpected error running %r", line)
            return CommandResult(stderr=f"tabsh: internal error: {type(e).__name__}: {e}\n", exit_code=1)

    def _exec(self, line: str) -> CommandResult:
        invocations = split_pipeline(line)
        if not invocations:
            return CommandResult()

        first = invocations[0]
        builtin = self._builtins.get(first.name)
        if builtin is not None:
            if len(invocations) > 1:
                raise TabshUserError(
                    "E_NOT_TABULAR",
                    f"'{first.name}' is a shell builtin; filter stages only accept tables.",
                    hint="Table producers: " + ", ".join(sorted(PRODUCER_REGISTRY)),
                    stage=first.name,
                )
            return builtin(list(first.args))

        pipe = Pipeline.from_line(line, cwd=self.cwd, sink=self.sink, grammar=self.grammar)
        ctx = pipe.run(self.config.producer_options())
        if ctx.plain is not None:
            return CommandResult(ctx.plain.stdout, ctx.plain.stderr, ctx.plain.exit_code)
        return CommandResult(stdout=ctx.output)

    # ---------- builtins ----------
    def _cd(self, args: List[str]) -> CommandResult:
        target = Path(args[0]).expanduser() if args else Path.home()
        if not target.is_absolute():
            target = Path(self.cwd) / target
        if not target.is_dir():
            return CommandResult(stderr=f"tabsh: cd: no such directory: {args[0] if args else target}\n",
                                 exit_code=1)
        self.cwd = str(target.resolve())
        return CommandResult()

    def _pwd(self, args: List[str]) -> CommandResult:
        return CommandResult(stdout=self.cwd + "\n")

    def _help(self, args: List[str]) -> CommandResult:
        lines = [
            "Builtins: " + ", ".join(self.builtin_names),
            "Table producers: " + ", ".join(sorted(PRODUCER_REGISTRY)),
            "Filter stages (after a pipe):",
        ]
        for stage in self.grammar.stages.values():
            lines.append(f"  {stage.usage:<28} e.g. {stage.example}")
        lines.append("Anything else runs as an external program.")
        return CommandResult(stdout="\n".join(lines) + "\n")

    def _exit(self, args: List[str]) -> CommandResult:
        return CommandResult(exit_requested=True)
