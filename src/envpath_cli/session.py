# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
EnvPath session engine.

Wires together:
- the injected ConfigModel (platform table + candidate table)
- an explicit environment mapping (a snapshot, never os.environ itself)
- an existence predicate for candidates
- an injected Executor for child processes

Important boundary:
- Session does not load YAML or discover config files.
- Session never mutates the environment it was given; it returns values
  and builds copies for children.
"""

from __future__ import annotations

import os
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from . import config as cfg_module
from .assembler import AssemblyPlan, plan_assembly
from .config import PlatformSpec, detect_platform, expand_candidate
from .environment import child_environment, read_path
from .interfaces import ConfigModel, Executor
from .utils import format_table, render_export


def write_crash_log(
    error: Exception,
    command: str = "",
    platform: str = "",
    config_path: str = "",
) -> None:
    """Write an entry to the crash log.

    Logs unhandled exceptions.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        logs_dir = cfg_module.logs_dir(cfg_module.get_data_root())
        logs_dir.mkdir(parents=True, exist_ok=True)

        crash_log_path = logs_dir / "crash.log"

        lines = [
            f"{datetime.now().isoformat()}",
            f"command={command}",
        ]
        if platform:
            lines.append(f"platform={platform}")
        if config_path:
            lines.append(f"config={config_path}")

        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(
            "".join(
                traceback.format_exception(
                    type(error), error, error.__traceback__
                )
            ).rstrip()
        )
        lines.append("----")

        with crash_log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # Already reporting a failure; a crash log we cannot write is dropped
        pass


@dataclass
class Session:
    """EnvPath session engine."""

    config: ConfigModel
    executor: Executor
    environ: Mapping[str, str] = field(
        default_factory=lambda: dict(os.environ)
    )
    platform_name: str = field(default_factory=detect_platform)
    exists: Callable[[str], bool] = os.path.isdir

    # Derived from config
    platform: PlatformSpec = field(init=False)

    def __post_init__(self) -> None:
        self.platform = self.config.platform(self.platform_name)

    # ---- inputs ----

    def current_path(self) -> str:
        return read_path(
            self.environ,
            self.platform.variable,
            self.platform.case_insensitive,
        )

    def candidate_pairs(self) -> list[tuple[str, str]]:
        """Return (raw, expanded) for each configured candidate."""
        pairs: list[tuple[str, str]] = []
        for raw in self.config.candidates_for(self.platform_name):
            expanded = expand_candidate(
                raw, self.environ, self.platform.case_insensitive
            )
            if expanded:
                pairs.append((raw, expanded))
        return pairs

    def candidates(self) -> list[str]:
        return [expanded for _raw, expanded in self.candidate_pairs()]

    # ---- assembly ----

    def plan(self) -> AssemblyPlan:
        return plan_assembly(
            self.current_path(),
            self.platform.separator,
            self.candidates(),
            exists=self.exists,
            case_insensitive=self.platform.case_insensitive,
        )

    def assembled_path(self) -> str:
        return self.plan().value

    def export_statement(self, shell: str) -> str:
        return render_export(
            shell,
            self.platform.variable,
            self.assembled_path(),
            self.platform.separator,
        )

    def child_env(self) -> dict[str, str]:
        """Copy of the session environment with the assembled path."""
        return child_environment(
            self.environ,
            self.platform.variable,
            self.assembled_path(),
            self.platform.case_insensitive,
        )

    # ---- reports ----

    def explain_rows(self) -> list[list[str]]:
        pairs = self.candidate_pairs()
        plan = self.plan()
        return [
            [raw, expanded, status]
            for (raw, expanded), (_candidate, status) in zip(
                pairs, plan.decisions
            )
        ]

    def explain(self) -> str:
        rows = self.explain_rows()
        plan = self.plan()
        title = (
            f"[{self.platform.name}] {self.platform.variable} "
            f"({len(plan.added)} added, {len(plan.missing)} missing, "
            f"{len(plan.duplicates)} present)"
        )
        if not plan.changed:
            title += " unchanged"
        table = format_table(["CANDIDATE", "EXPANDED", "STATUS"], rows, title)
        if not table:
            table = f"{title}\n(no candidates configured)"
        return f"{table}\n\n{self.platform.variable}={plan.value}"

    # ---- children ----

    def run(self, argv: list[str]) -> Any:
        """Run argv with the assembled path in its environment."""
        return self.executor.run_tty(argv, self.child_env())
