# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Configuration and platform resolution for EnvPath.

Handles:
- Data root resolution (ENVPATH_DATA_HOME, ~/.local/share)
- Packaged YAML defaults loading (envpath_cli/defaults/system.yaml)
- User YAML overrides (--config, ENVPATH_CONFIG, ~/.config/envpath)
- Platform table and per-platform candidate table
- Candidate expansion (~, $VAR, ${VAR}, %VAR%) against an explicit mapping
- ANSI coloring constants for tagged diagnostics
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml


# -----------------------
# Diagnostics constants
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[38;5;69;1m",
    "pink": "\033[38;5;169;1m",
    "yellow": "\033[38;5;226;1m",
    "reset": "\033[0m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "red": "\033[31m",
}

TAG_COLORS: dict[str, str] = {
    "WARN": "yellow",
    "ERR": "red",
    "ERROR": "red",
    "added": "green",
    "missing": "dim",
    "present": "cyan",
}

PLATFORM_IDS = ("linux", "darwin", "windows")

CONFIG_ENV_VAR = "ENVPATH_CONFIG"
DATA_HOME_ENV_VAR = "ENVPATH_DATA_HOME"


# -----------------------
# Platform model
# -----------------------


@dataclass(frozen=True)
class PlatformSpec:
    """How the search path is stored on one platform."""

    name: str
    family: str = "posix"
    variable: str = "PATH"
    separator: str = ":"
    case_insensitive: bool = False

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> PlatformSpec:
        family = str(data.get("family") or "posix")
        default_sep = ";" if family == "windows" else ":"
        # Only real YAML booleans count; a quoted "false" would be truthy
        case_insensitive = data.get("case_insensitive")
        if not isinstance(case_insensitive, bool):
            case_insensitive = family == "windows"
        return cls(
            name=name,
            family=family,
            variable=str(data.get("variable") or "PATH"),
            separator=str(data.get("separator") or default_sep),
            case_insensitive=case_insensitive,
        )


def detect_platform(sys_platform: str | None = None) -> str:
    """Map ``sys.platform`` onto a platform id."""
    value = sys_platform if sys_platform is not None else sys.platform
    if value.startswith(("win32", "cygwin")):
        return "windows"
    if value == "darwin":
        return "darwin"
    return "linux"


# -----------------------
# Config model wrapper
# -----------------------


class YAMLConfig:
    """Simple config wrapper that implements ConfigModel protocol."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict

    @property
    def platforms(self) -> dict[str, dict[str, Any]]:
        platforms = self._config.get("platforms", {})
        return platforms if isinstance(platforms, dict) else {}

    @property
    def candidates(self) -> dict[str, list[str]]:
        table = self._config.get("candidates", {})
        return table if isinstance(table, dict) else {}

    @property
    def prepend(self) -> list[str]:
        return _as_str_list(self.get("prepend", []))

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("platforms.windows.separator", ":") -> ";"
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur

    def platform(self, name: str) -> PlatformSpec:
        """Return the PlatformSpec for ``name``.

        Unknown platforms fall back to posix defaults.
        """
        data = self.get_path(f"platforms.{name}", {})
        if not isinstance(data, dict):
            data = {}
        return PlatformSpec.from_dict(name, data)

    def candidates_for(self, name: str) -> list[str]:
        """Return raw candidate entries for a platform, in priority order.

        Order: ``prepend`` entries, the platform's own list, then its
        family's list when the family key differs from the platform id.
        """
        spec = self.platform(name)
        entries = list(self.prepend)
        entries.extend(_as_str_list(self.candidates.get(name)))
        if spec.family != name:
            entries.extend(_as_str_list(self.candidates.get(spec.family)))
        return entries


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v) != ""]


# -----------------------
# Data root
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory for EnvPath.

    Resolution order:
    1. ENVPATH_DATA_HOME environment variable (if set)
    2. ~/.local/share (default, XDG_DATA_HOME is ignored)
    """
    data_home = os.getenv(DATA_HOME_ENV_VAR)
    if data_home:
        return Path(data_home)
    return Path.home() / ".local" / "share"


def logs_dir(data_root: Path) -> Path:
    """<data_root>/envpath/logs"""
    return data_root / "envpath" / "logs"


# -----------------------
# Candidate expansion
# -----------------------

_VAR_PATTERN = re.compile(
    r"\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}"
    r"|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)"
    r"|%(?P<percent>[A-Za-z_][A-Za-z0-9_()]*)%"
)


def lookup_env(
    environ: Mapping[str, str], name: str, case_insensitive: bool = False
) -> str | None:
    """Look up ``name`` in ``environ``.

    With ``case_insensitive`` a plain dict behaves like the Windows
    environment block, where ``Path`` and ``PATH`` are the same variable.
    """
    if name in environ:
        return environ[name]
    if case_insensitive:
        folded = name.casefold()
        for key, value in environ.items():
            if key.casefold() == folded:
                return value
    return None


def expand_vars(
    text: str, environ: Mapping[str, str], case_insensitive: bool = False
) -> str:
    """Expand $VAR, ${VAR} and %VAR% references. Unknown names stay literal."""

    def _replace(match: re.Match[str]) -> str:
        name = (
            match.group("braced")
            or match.group("bare")
            or match.group("percent")
        )
        value = lookup_env(environ, name, case_insensitive)
        return match.group(0) if value is None else value

    return _VAR_PATTERN.sub(_replace, text)


def expand_user(
    text: str, environ: Mapping[str, str], case_insensitive: bool = False
) -> str:
    """Expand a leading ``~``.

    ``~`` and ``~/...`` use HOME (or USERPROFILE) from ``environ``;
    ``~user/...`` is left to ``os.path.expanduser``.
    """
    if not text.startswith("~"):
        return text
    if text != "~" and not text.startswith(("~/", "~\\")):
        return os.path.expanduser(text)
    home = lookup_env(environ, "HOME", case_insensitive)
    if not home:
        home = lookup_env(environ, "USERPROFILE", case_insensitive)
    if not home:
        return os.path.expanduser(text)
    return home + text[1:]


def expand_candidate(
    entry: str, environ: Mapping[str, str], case_insensitive: bool = False
) -> str:
    return expand_vars(
        expand_user(entry.strip(), environ, case_insensitive),
        environ,
        case_insensitive,
    )


# -----------------------
# YAML loading
# -----------------------


def _defaults_dir() -> Path:
    """Return the installed path to the packaged defaults directory."""
    return Path(
        importlib_resources.files("envpath_cli.defaults")
    )  # type: ignore[arg-type]


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML file that must contain a mapping (empty file -> {})."""
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config YAML {path} must load to a mapping/dict.")
    return data


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """
    Load a YAML file from envpath_cli/defaults/.
    """
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )
    return load_yaml_mapping(path)


def merge_config(
    base: dict[str, Any], override: dict[str, Any]
) -> dict[str, Any]:
    """Merge a user config over the defaults.

    Mappings merge one level deeper (``platforms.linux`` updates key by key,
    ``candidates.linux`` replaces the list). Other values replace outright.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            section = dict(current)
            for sub_key, sub_value in value.items():
                existing = section.get(sub_key)
                if isinstance(existing, dict) and isinstance(sub_value, dict):
                    section[sub_key] = {**existing, **sub_value}
                else:
                    section[sub_key] = sub_value
            merged[key] = section
        else:
            merged[key] = value
    return merged


def user_config_path(
    explicit: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Resolve which user config file to read, if any.

    Resolution order:
    1. explicit path (--config)
    2. ENVPATH_CONFIG
    3. ~/.config/envpath/config.yaml, only when it exists
    """
    if explicit:
        return Path(explicit).expanduser()

    env = os.environ if environ is None else environ
    from_env = env.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()

    default = Path.home() / ".config" / "envpath" / "config.yaml"
    return default if default.exists() else None


def load_config(
    path: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
    warn_fn: Callable[[str], None] | None = None,
) -> YAMLConfig:
    """
    Load packaged defaults, overlay the user config, and wrap the result.

    A broken user config never stops assembly: it is reported through
    ``warn_fn`` and the packaged defaults are used alone.
    """
    data = load_defaults_yaml("system.yaml")

    user_path = user_config_path(path, environ)
    if user_path is None:
        return YAMLConfig(data)

    try:
        user_data = load_yaml_mapping(user_path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        if warn_fn is not None:
            warn_fn(f"Ignoring config {user_path}: {e}")
        return YAMLConfig(data)

    return YAMLConfig(merge_config(data, user_data))
