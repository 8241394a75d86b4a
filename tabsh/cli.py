"""
Command-Line Interface

Commands:
    tabsh shell              - Interactive shell (default)
    tabsh exec LINE          - Run one command line and exit with its status
    tabsh complete LINE      - Print completion candidates for LINE
    tabsh stages             - Describe the filter stages

Usage:
    tabsh exec "ls | where Size > 10kb | sort-by Size desc | limit 5"
    tabsh exec "ps | contains Name python | select PID Name Memory"
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console
from rich.table import Table as RichTable
from rich.text import Text

from tabsh.completion import GrammarCompleter, suggest
from tabsh.config import ShellConfig, load_config
from tabsh.errors import TabshUserError
from tabsh.logging_config import configure_logging
from tabsh.shell import CommandResult, Shell, format_error

__all__ = ["main", "app"]

app = typer.Typer(
    name="tabsh",
    help="A command shell whose listings are typed tables you can filter with pipes",
    invoke_without_command=True,
)
console = Console()
err_console = Console(stderr=True)


def _emit(result: CommandResult) -> None:
    if result.stdout:
        typer.echo(result.stdout, nl=False)
    if result.stderr:
        err_console.print(result.stderr, style="red", markup=False, highlight=False, end="")


def _config(ctx: typer.Context) -> ShellConfig:
    return ctx.obj if isinstance(ctx.obj, ShellConfig) else ShellConfig()


@app.callback()
def _main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="YAML config file (default: $TABSH_CONFIG or ~/.config/tabsh/config.yaml)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level", "-l",
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
    ),
) -> None:
    try:
        cfg = load_config(config)
    except TabshUserError as e:
        err_console.print(format_error(e), style="red", markup=False, highlight=False, end="")
        raise typer.Exit(code=2)
    configure_logging(log_level, log_file, default=cfg.log_level)
    ctx.obj = cfg
    if ctx.invoked_subcommand is None:
        shell(ctx)


def _session(sh: Shell) -> Optional[PromptSession]:
    """A line editor with grammar completion, or None when stdin is not a terminal."""
    if not sys.stdin.isatty():
        return None
    return PromptSession(
        history=InMemoryHistory(),
        completer=GrammarCompleter(sh.grammar, sh.builtin_names),
        complete_while_typing=False,
    )


@app.command()
def shell(ctx: typer.Context) -> None:
    """Start an interactive shell."""
    sh = Shell(_config(ctx))
    session = _session(sh)
    while True:
        try:
            line = session.prompt(sh.prompt()) if session else input(sh.prompt())
        except KeyboardInterrupt:
            # Ctrl-C drops the current line
            typer.echo()
            continue
        except EOFError:
            typer.echo()
            raise typer.Exit(code=0)
        result = sh.exec(line)
        _emit(result)
        if result.exit_requested:
            raise typer.Exit(code=0)


@app.command("exec")
def exec_line(
    ctx: typer.Context,
    line: str = typer.Argument(..., help="Command line to run, pipes included"),
) -> None:
    """Run a single command line."""
    result = Shell(_config(ctx)).exec(line)
    _emit(result)
    raise typer.Exit(code=result.exit_code)


@app.command()
def complete(
    ctx: typer.Context,
    line: str = typer.Argument("", help="Partial command line"),
) -> None:
    """Print completion candidates for the end of LINE, one per line."""
    sh = Shell(_config(ctx))
    for candidate in suggest(line, sh.grammar, sh.builtin_names):
        typer.echo(candidate)


@app.command()
def stages(ctx: typer.Context) -> None:
    """Describe the filter stages that may follow a pipe."""
    sh = Shell(_config(ctx))
    table = RichTable(title="Filter stages")
    table.add_column("Stage", style="cyan")
    table.add_column("Usage")
    table.add_column("Example", style="green")
    for stage in sh.grammar.stages.values():
        table.add_row(stage.name, Text(stage.usage), Text(stage.example))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
