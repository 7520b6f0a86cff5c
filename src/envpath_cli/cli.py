# EnvPath — Idempotent Search-Path Assembly
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
EnvPath CLI entry point.

Design:
- CLI owns process startup, config resolution and the environment snapshot.
- Session is the engine (config + executor + environment injected).
- stdout carries only the requested result so ``eval "$(envpath)"`` stays
  safe; diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Mapping

from . import __version__, config
from .executor import SubprocessExecutor
from .session import Session, write_crash_log
from .utils import SHELLS, colorize, format_table


def _color_enabled(stream, environ: Mapping[str, str]) -> bool:
    if environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _diagnostic(tag: str, message: str, environ: Mapping[str, str]) -> str:
    enabled = _color_enabled(sys.stderr, environ)
    return f"{colorize(tag, f'[{tag}]', enabled)} {message}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envpath",
        description=(
            "Prepend existing toolchain directories to PATH without "
            "duplicates or reordering."
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--platform",
        choices=config.PLATFORM_IDS,
        default=None,
        help="Platform table to use (default: detected)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"User config YAML (default: ${config.CONFIG_ENV_VAR} or "
             "~/.config/envpath/config.yaml)",
    )
    parser.add_argument(
        "--shell",
        choices=SHELLS,
        default="sh",
        help="Export syntax for the assemble command (default: sh)",
    )

    sub = parser.add_subparsers(dest="command")
    assemble_parser = sub.add_parser(
        "assemble", help="Print the export statement (default)"
    )
    assemble_parser.add_argument(
        "--shell", choices=SHELLS, default=argparse.SUPPRESS
    )
    sub.add_parser("explain", help="Show what happens to each candidate")
    sub.add_parser("candidates", help="List configured candidates")
    exec_parser = sub.add_parser(
        "exec", help="Run a command with the assembled path"
    )
    exec_parser.add_argument("argv", nargs=argparse.REMAINDER)
    return parser


def cmd_assemble(session: Session, args: argparse.Namespace, out) -> int:
    out(session.export_statement(args.shell))
    return 0


def cmd_explain(session: Session, args: argparse.Namespace, out) -> int:
    out(session.explain())
    return 0


def cmd_candidates(session: Session, args: argparse.Namespace, out) -> int:
    rows = [[i + 1, raw, expanded]
            for i, (raw, expanded) in enumerate(session.candidate_pairs())]
    table = format_table(
        ["#", "CANDIDATE", "EXPANDED"], rows,
        title=f"[{session.platform.name}]",
    )
    out(table or f"[{session.platform.name}] (no candidates configured)")
    return 0


def cmd_exec(session: Session, args: argparse.Namespace, out) -> int:
    argv = list(args.argv)
    if argv and argv[0] == "--":
        argv = argv[1:]
    if not argv:
        print(
            _diagnostic("ERR", "exec needs a command", session.environ),
            file=sys.stderr,
        )
        return 2

    result = session.run(argv)
    if getattr(result, "error", ""):
        print(
            _diagnostic("ERR", result.error, session.environ),
            file=sys.stderr,
        )
    return result.exit_code


COMMANDS: dict[str, Callable[..., int]] = {
    "assemble": cmd_assemble,
    "explain": cmd_explain,
    "candidates": cmd_candidates,
    "exec": cmd_exec,
}


def main(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    output_fn: Callable[[str], None] = print,
) -> int:
    """Main entry point for the EnvPath CLI."""
    args = build_parser().parse_args(argv)
    command = args.command or "assemble"
    env = dict(os.environ) if environ is None else dict(environ)
    platform_name = args.platform or config.detect_platform()

    def warn(message: str) -> None:
        print(_diagnostic("WARN", message, env), file=sys.stderr)

    try:
        cfg = config.load_config(args.config, environ=env, warn_fn=warn)
        session = Session(
            config=cfg,
            executor=SubprocessExecutor(),
            environ=env,
            platform_name=platform_name,
        )
        return COMMANDS[command](session, args, output_fn)
    except Exception as e:
        write_crash_log(
            e,
            command=command,
            platform=platform_name,
            config_path=args.config or "",
        )
        print(
            _diagnostic(
                "ERROR", f"Unhandled exception: {type(e).__name__}: {e}", env
            ),
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
