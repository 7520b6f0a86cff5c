# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Reading and exporting the search-path variable.

All functions take the environment as an explicit mapping. Nothing here
touches ``os.environ`` unless the caller passes it in.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping

from .config import lookup_env


def _existing_key(
    environ: Mapping[str, str], variable: str, case_insensitive: bool
) -> str:
    if variable in environ or not case_insensitive:
        return variable
    folded = variable.casefold()
    for key in environ:
        if key.casefold() == folded:
            return key
    return variable


def read_path(
    environ: Mapping[str, str], variable: str, case_insensitive: bool = False
) -> str:
    """Return the current value of ``variable`` or "" when unset."""
    return lookup_env(environ, variable, case_insensitive) or ""


def apply_path(
    environ: MutableMapping[str, str],
    variable: str,
    value: str,
    case_insensitive: bool = False,
) -> None:
    """Export ``value`` into ``environ``.

    On case-insensitive platforms an existing differently-cased key
    (``Path``) is overwritten instead of adding a second one.
    """
    environ[_existing_key(environ, variable, case_insensitive)] = value


def child_environment(
    environ: Mapping[str, str],
    variable: str,
    value: str,
    case_insensitive: bool = False,
) -> dict[str, str]:
    """Return a copy of ``environ`` with the path variable replaced."""
    env = dict(environ)
    apply_path(env, variable, value, case_insensitive)
    return env
