"""
config.py

Responsibility: Hold the resolved configuration for one invocation and load
optional defaults from a YAML file.

Precedence (highest first):
- command-line flags
- the YAML defaults file (`--config` or `$CARGO_PLAY_CONFIG`)
- built-in defaults on `Options`

The rest of the pipeline treats `Options` as the single source of truth and
never looks at argv or the environment itself.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cargoplay.errors import CargoPlayError

CONFIG_ENV_VAR = "CARGO_PLAY_CONFIG"
DEFAULT_EDITION = "2021"

_BOOL_KEYS = ("infer", "cached", "release", "quiet")
_STR_KEYS = ("edition", "toolchain", "cargo_option", "workspace_root")
_INT_KEYS = ("verbose",)


class ConfigError(CargoPlayError):
    pass


@dataclass(frozen=True)
class Options:
    """Resolved options for a single cargo-play run."""

    src: tuple[Path, ...] = ()
    stdin: bool = False
    edition: str = DEFAULT_EDITION
    toolchain: str | None = None
    cargo_option: str | None = None
    infer: bool = False
    clean: bool = False
    cached: bool = False
    release: bool = False
    quiet: bool = False
    verbose: int = 0
    mode: str = "run"
    save: Path | None = None
    args: tuple[str, ...] = ()
    workspace_root: Path | None = None

    def resolved_workspace_root(self) -> Path:
        if self.workspace_root is not None:
            return Path(self.workspace_root)
        return Path(tempfile.gettempdir())


@dataclass(frozen=True)
class FileDefaults:
    """Values read from a YAML defaults file; only keys present in the file are set."""

    path: Path | None = None
    values: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, fallback: Any = None) -> Any:
        return self.values.get(key, fallback)


def config_path_from_env(explicit: str | Path | None) -> Path | None:
    if explicit:
        return Path(explicit)
    env_value = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(env_value) if env_value else None


def _check_types(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigError(f"`{key}` must be a boolean, got {value!r}")
            out[key] = value
        elif key in _INT_KEYS:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"`{key}` must be a non-negative integer, got {value!r}")
            out[key] = value
        elif key in _STR_KEYS:
            if value is None:
                continue
            # YAML reads `edition: 2021` as an int.
            out[key] = str(value).strip()
        else:
            raise ConfigError(f"Unknown configuration key: `{key}`")
    return out


def load_defaults(config_path: str | Path | None) -> FileDefaults:
    """
    Load the YAML defaults file, if one was given.

    An explicitly named file that does not exist is an error; no file at all
    yields empty defaults.
    """
    if config_path is None:
        return FileDefaults()

    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file does not exist: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")

    return FileDefaults(path=path, values=_check_types(data))
