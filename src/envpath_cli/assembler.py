# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Search-path assembly.

Given the current value of a search path and an ordered list of candidate
directories, produce a new value where:
- every candidate that exists and is not already present is prepended,
  keeping candidate order
- pre-existing entries keep their relative order and are never moved
- no two entries compare equal (casefolded on case-insensitive platforms)

The functions here are pure: the caller reads the current value and decides
whether to export the result.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field


def path_key(entry: str, case_insensitive: bool) -> str:
    """Return the membership key for an entry under the comparison rule."""
    return entry.casefold() if case_insensitive else entry


def split_path(value: str, separator: str) -> list[str]:
    """Split a search path into entries.

    An empty value has no entries. Empty segments inside a non-empty value
    are kept: on POSIX they mean the current directory.
    """
    if not value:
        return []
    return value.split(separator)


def join_path(entries: Iterable[str], separator: str) -> str:
    return separator.join(entries)


ADDED = "added"
MISSING = "missing"
PRESENT = "present"


def _safe_exists(exists: Callable[[str], bool], candidate: str) -> bool:
    try:
        return bool(exists(candidate))
    except OSError:
        return False


@dataclass(frozen=True)
class AssemblyPlan:
    """Outcome of planning an assembly.

    Attributes:
        existing: Pre-existing entries, first occurrence only
        added: Candidates to prepend, in candidate order
        missing: Candidates skipped because the predicate rejected them
        duplicates: Candidates skipped because they were already present
        decisions: (candidate, status) for every candidate, in input order
        separator: Separator used to join ``value``
    """

    existing: tuple[str, ...]
    added: tuple[str, ...]
    missing: tuple[str, ...] = field(default_factory=tuple)
    duplicates: tuple[str, ...] = field(default_factory=tuple)
    decisions: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    separator: str = os.pathsep

    @property
    def entries(self) -> tuple[str, ...]:
        return self.added + self.existing

    @property
    def value(self) -> str:
        return join_path(self.entries, self.separator)

    @property
    def changed(self) -> bool:
        return bool(self.added)


def plan_assembly(
    current_path: str,
    separator: str,
    candidates: Iterable[str],
    exists: Callable[[str], bool] = os.path.isdir,
    case_insensitive: bool = False,
) -> AssemblyPlan:
    """Plan the assembly of ``current_path`` with ``candidates``.

    Args:
        current_path: Current search-path value (may be empty)
        separator: Platform path separator (":" or ";")
        candidates: Directories to prepend, in priority order
        exists: Predicate deciding whether a candidate may be added
        case_insensitive: Compare entries casefolded

    Returns:
        AssemblyPlan describing what is added and what is skipped
    """
    existing: list[str] = []
    seen: set[str] = set()
    for entry in split_path(current_path, separator):
        key = path_key(entry, case_insensitive)
        if key in seen:
            continue
        seen.add(key)
        existing.append(entry)

    added: list[str] = []
    missing: list[str] = []
    duplicates: list[str] = []
    decisions: list[tuple[str, str]] = []
    for candidate in candidates:
        if not candidate:
            continue
        key = path_key(candidate, case_insensitive)
        if key in seen:
            duplicates.append(candidate)
            decisions.append((candidate, PRESENT))
            continue
        if not _safe_exists(exists, candidate):
            missing.append(candidate)
            decisions.append((candidate, MISSING))
            continue
        seen.add(key)
        added.append(candidate)
        decisions.append((candidate, ADDED))

    return AssemblyPlan(
        existing=tuple(existing),
        added=tuple(added),
        missing=tuple(missing),
        duplicates=tuple(duplicates),
        decisions=tuple(decisions),
        separator=separator,
    )


def assemble(
    current_path: str,
    separator: str,
    candidates: Iterable[str],
    exists: Callable[[str], bool] = os.path.isdir,
    case_insensitive: bool = False,
) -> str:
    """Return ``current_path`` with new, existing candidates prepended."""
    return plan_assembly(
        current_path, separator, candidates,
        exists=exists, case_insensitive=case_insensitive,
    ).value
