from __future__ import annotations

import difflib
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from tabsh.errors import TabshUserError

CONFIG_ENV = "TABSH_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/tabsh/config.yaml")


@dataclass(frozen=True)
class ShellConfig:
    prompt: str = "tabsh:{cwd}> "
    padding: int = 4
    empty_notice: str = "(empty table)"
    show_hidden: bool = True
    preview_rows: int = 5
    log_level: str = "WARNING"

    def producer_options(self) -> Dict[str, Any]:
        return {"show_hidden": self.show_hidden, "preview_rows": self.preview_rows}


def _check_value(name: str, value: Any, expected: type) -> None:
    # bool is an int subclass; keep the two apart
    ok = isinstance(value, expected) and not (expected is int and isinstance(value, bool))
    if not ok:
        raise TabshUserError(
            "E_CONFIG_VALUE",
            f"Config key '{name}' must be of type {expected.__name__}, got {type(value).__name__}.",
            hint=f"Example: {name}: {getattr(ShellConfig, name)!r}",
        )


def config_from_mapping(data: Dict[str, Any]) -> ShellConfig:
    if not isinstance(data, dict):
        raise TabshUserError(
            "E_CONFIG_ROOT",
            "Config file must contain a mapping at the root.",
            hint="Example:\npadding: 4\nshow_hidden: false",
        )
    known = {f.name: f for f in fields(ShellConfig)}
    for key, value in data.items():
        if key not in known:
            matches = difflib.get_close_matches(str(key), list(known), n=1)
            raise TabshUserError(
                "E_CONFIG_KEY",
                f"Unknown config key {key!r}.",
                hint=f"Did you mean {matches[0]!r}?" if matches else "Known keys: " + ", ".join(known),
            )
        _check_value(key, value, type(getattr(ShellConfig, key)))
    if data.get("padding", 2) < 2:
        raise TabshUserError(
            "E_CONFIG_VALUE",
            "Config key 'padding' must be at least 2.",
            hint="Example: padding: 4",
        )
    if "prompt" in data:
        _check_prompt(data["prompt"])
    return ShellConfig(**data)


def _check_prompt(template: str) -> None:
    # {cwd} is the only placeholder the shell fills in
    try:
        template.format(cwd="")
    except (KeyError, IndexError, AttributeError, ValueError) as e:
        raise TabshUserError(
            "E_CONFIG_VALUE",
            f"Config key 'prompt' has an unsupported placeholder or brace: {e}.",
            hint="Only {cwd} is filled in; write literal braces as {{ and }}.",
        ) from e


def load_config(path: Optional[Union[str, Path]] = None) -> ShellConfig:
    """Load the shell config from `path`, $TABSH_CONFIG or the default location.

    A missing default file yields the built-in defaults; an explicitly named file must exist.
    """
    explicit = path or os.environ.get(CONFIG_ENV)
    p = Path(explicit).expanduser() if explicit else DEFAULT_CONFIG_PATH.expanduser()
    if not p.exists():
        if explicit:
            raise TabshUserError(
                "E_CONFIG_PARSE",
                f"Config file not found: '{p}'.",
                hint=f"Create it or unset {CONFIG_ENV}.",
            )
        return ShellConfig()
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise TabshUserError(
            "E_CONFIG_PARSE",
            f"Failed to read config '{p}': {e}",
            hint="Check indentation and quoting.",
        ) from e
    if data is None:
        return ShellConfig()
    return config_from_mapping(data)
