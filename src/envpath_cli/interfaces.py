# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the session engine independent of where its
configuration comes from and how child processes are launched.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class Executor(Protocol):
    """Protocol for launching child processes."""

    def run_tty(self, argv: list[str], env: Mapping[str, str]) -> Any:
        """Run argv with env attached to the current terminal.

        Returns:
            An object with ``exit_code``, ``started_at`` and ``duration_ms``
        """
        ...


class ConfigModel(Protocol):
    """Protocol for configuration access."""

    @property
    def platforms(self) -> dict[str, dict[str, Any]]:
        """Platform table keyed by platform id."""
        ...

    @property
    def candidates(self) -> dict[str, list[str]]:
        """Candidate table keyed by platform id or family."""
        ...

    def platform(self, name: str) -> Any:
        """PlatformSpec for a platform id."""
        ...

    def candidates_for(self, name: str) -> list[str]:
        """Raw candidate entries for a platform, in priority order."""
        ...
