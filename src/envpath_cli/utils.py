# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Utility functions for EnvPath.
"""

import re
import shlex
from typing import Any

from .config import ANSI_COLORS, TAG_COLORS

SHELLS = ("sh", "bash", "zsh", "fish", "powershell", "cmd", "raw")


def format_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str = ""
) -> str:
    """
    Format data as a simple text table without external dependencies.

    Args:
        headers: List of column header names
        rows: List of rows, where each row is a list of values
        title: Optional title to display above the table

    Returns:
        Formatted table as a string
    """
    if not rows:
        return ""

    str_headers = [str(h) for h in headers]
    str_rows = [[str(val) for val in row] for row in rows]

    col_widths = []
    for i, header in enumerate(str_headers):
        max_width = len(header)
        for row in str_rows:
            if i < len(row):
                max_width = max(max_width, len(row[i]))
        col_widths.append(max_width)

    lines = []
    if title:
        lines.append(title)

    lines.append("  ".join(
        header.ljust(col_widths[i]) for i, header in enumerate(str_headers)
    ).rstrip())
    for row in str_rows:
        lines.append("  ".join(
            val.ljust(col_widths[i]) for i, val in enumerate(row)
        ).rstrip())

    return "\n".join(lines)


def shell_quote(s: str) -> str:
    """Shell-escape string for safe substitution in POSIX shell commands."""
    return shlex.quote(s)


_FISH_SAFE = re.compile(r"[\w@%+=:,./-]+")


def fish_quote(s: str) -> str:
    """Quote for fish.

    Inside single quotes fish still unescapes backslash and single quote,
    so both are backslash-escaped.
    """
    if s and _FISH_SAFE.fullmatch(s):
        return s
    return "'" + s.replace("\\", "\\\\").replace("'", "\\'") + "'"


def powershell_quote(s: str) -> str:
    """Single-quote for PowerShell; embedded quotes are doubled."""
    return "'" + s.replace("'", "''") + "'"


def render_export(
    shell: str, variable: str, value: str, separator: str = ":"
) -> str:
    """Render a statement that exports ``variable=value`` in ``shell``.

    Args:
        shell: One of SHELLS
        variable: Environment variable name (e.g. PATH)
        value: Assembled value
        separator: Separator used in ``value`` (fish needs the list form)

    Returns:
        A single line suitable for ``eval`` / ``source``
    """
    if shell in ("sh", "bash", "zsh"):
        return f"export {variable}={shell_quote(value)}"
    if shell == "fish":
        entries = value.split(separator) if value else []
        if not entries:
            return f"set -gx {variable}"
        quoted = " ".join(fish_quote(e) for e in entries)
        return f"set -gx {variable} {quoted}"
    if shell == "powershell":
        return f"$env:{variable} = {powershell_quote(value)}"
    if shell == "cmd":
        return f'set "{variable}={value}"'
    if shell == "raw":
        return value
    raise ValueError(f"Unknown shell: {shell}")


def colorize(tag: str, text: str, enabled: bool = True) -> str:
    """Wrap text in the ANSI color registered for ``tag``."""
    if not enabled:
        return text
    color = ANSI_COLORS.get(TAG_COLORS.get(tag, ""), "")
    if not color:
        return text
    return f"{color}{text}{ANSI_COLORS['reset']}"
