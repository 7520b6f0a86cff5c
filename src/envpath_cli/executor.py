# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed executor implementation for EnvPath.

run_tty() launches the command for ``envpath exec`` attached to the current
terminal (no capture). It takes an explicit environment; the assembled path
reaches the child only through that mapping.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TTYResult:
    """Result from TTY/passthrough execution (no output capture)."""

    exit_code: int
    started_at: str
    duration_ms: int
    error: str = ""


def _normalize_exit_code(code: int) -> int:
    """Map a Popen return code onto a shell-style exit status.

    A child killed by signal N (negative return code) exits 128 + N;
    127 (command not found from a shell wrapper) is reported as 1.
    """
    if code < 0:
        return 128 - code
    return 1 if code == 127 else code


class SubprocessExecutor:
    """Subprocess implementation of Executor protocol."""

    def __init__(self, timeout: int | None = None):
        """Initialize executor with configuration.

        Args:
            timeout: Command timeout in seconds (default: no timeout)
        """
        self.timeout = timeout

    def run_tty(
        self,
        argv: list[str],
        env: Mapping[str, str],
        timeout: int | None = None,
        cwd: str | None = None,
    ) -> TTYResult:
        """Run argv with full terminal control (no output capture).

        The child inherits stdin/stdout/stderr from the parent process.

        Args:
            argv: program and arguments (no shell involved)
            env: complete environment for the child
            timeout: overrides self.timeout
            cwd: working directory for the command (default: current directory)

        Returns:
            TTYResult (exit_code, started_at, duration_ms, error)
        """
        started_at = datetime.now().isoformat()
        start_ts = time.time()
        limit = timeout if timeout is not None else self.timeout

        try:
            proc = subprocess.Popen(
                argv,
                stdin=None,  # inherit from parent
                stdout=None,  # inherit from parent
                stderr=None,  # inherit from parent
                env=dict(env),
                cwd=cwd,
            )
        except FileNotFoundError:
            return TTYResult(
                exit_code=1,
                started_at=started_at,
                duration_ms=int((time.time() - start_ts) * 1000),
                error=f"command not found: {argv[0] if argv else ''}",
            )
        except OSError as e:
            return TTYResult(
                exit_code=1,
                started_at=started_at,
                duration_ms=int((time.time() - start_ts) * 1000),
                error=f"Error executing command: {e}",
            )

        try:
            exit_code = proc.wait(timeout=limit)
        except subprocess.TimeoutExpired:
            proc.terminate()
            try:
                proc.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
            return TTYResult(
                exit_code=1,
                started_at=started_at,
                duration_ms=int((time.time() - start_ts) * 1000),
                error=f"Command timed out after {limit} seconds",
            )
        except KeyboardInterrupt:
            # Child received the same SIGINT; wait for it to finish
            exit_code = proc.wait()

        return TTYResult(
            exit_code=_normalize_exit_code(exit_code),
            started_at=started_at,
            duration_ms=int((time.time() - start_ts) * 1000),
        )
