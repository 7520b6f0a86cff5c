# tests/test_cli.py
from __future__ import annotations

import sys
from pathlib import Path

import pytest

import envpath_cli.cli as cli
from envpath_cli import __version__
from envpath_cli.config import ANSI_COLORS


@pytest.fixture
def tmp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("ENVPATH_DATA_HOME", str(tmp_path / "data"))
    return home


@pytest.fixture
def toolchain(tmp_home: Path, tmp_path: Path) -> Path:
    """A user config with one existing, one missing and one present candidate."""
    (tmp_home / ".cargo" / "bin").mkdir(parents=True)
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "prepend: []\n"
        "candidates:\n"
        "  linux:\n"
        "    - ~/.cargo/bin\n"
        "    - ~/missing/bin\n"
        "    - /usr/bin\n"
        "  posix: []\n",
        encoding="utf-8",
    )
    return cfg


def run_cli(argv: list[str], environ: dict[str, str]) -> tuple[int, list[str]]:
    outputs: list[str] = []
    code = cli.main(argv, environ=environ, output_fn=outputs.append)
    return code, outputs


# -------------------------------------------------------------------
# assemble
# -------------------------------------------------------------------


def test_default_command_prints_sh_export(toolchain: Path, tmp_home: Path) -> None:
    env = {"PATH": "/usr/bin:/bin", "HOME": str(tmp_home)}
    code, outputs = run_cli(["--platform", "linux", "--config", str(toolchain)], env)

    assert code == 0
    assert outputs == [f"export PATH={tmp_home}/.cargo/bin:/usr/bin:/bin"]


def test_assemble_subcommand_accepts_shell_option(
    toolchain: Path, tmp_home: Path
) -> None:
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(toolchain),
         "assemble", "--shell", "raw"],
        env,
    )

    assert code == 0
    assert outputs == [f"{tmp_home}/.cargo/bin:/usr/bin"]


def test_global_shell_option_fish(toolchain: Path, tmp_home: Path) -> None:
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(toolchain), "--shell", "fish"],
        env,
    )

    assert code == 0
    assert outputs == [f"set -gx PATH {tmp_home}/.cargo/bin /usr/bin"]


def test_assemble_is_idempotent_through_cli(toolchain: Path, tmp_home: Path) -> None:
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    args = ["--platform", "linux", "--config", str(toolchain), "--shell", "raw"]
    _, first = run_cli(args, env)
    _, second = run_cli(args, {**env, "PATH": first[0]})

    assert second == first


def test_cli_does_not_touch_process_environment(
    toolchain: Path, tmp_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PATH", "/usr/bin")
    monkeypatch.setattr(cli.os, "environ", {"PATH": "/usr/bin", "HOME": str(tmp_home)})

    code, _ = run_cli(["--platform", "linux", "--config", str(toolchain)], None)

    assert code == 0
    assert cli.os.environ["PATH"] == "/usr/bin"


# -------------------------------------------------------------------
# explain / candidates
# -------------------------------------------------------------------


def test_explain_lists_statuses(toolchain: Path, tmp_home: Path) -> None:
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(toolchain), "explain"], env
    )

    assert code == 0
    text = outputs[0]
    assert "(1 added, 1 missing, 1 present)" in text
    assert "~/missing/bin" in text
    assert text.endswith(f"PATH={tmp_home}/.cargo/bin:/usr/bin")


def test_candidates_lists_expanded_entries(toolchain: Path, tmp_home: Path) -> None:
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(toolchain), "candidates"], env
    )

    assert code == 0
    lines = outputs[0].split("\n")
    assert lines[0] == "[linux]"
    assert len(lines) == 5
    assert f"{tmp_home}/.cargo/bin" in lines[2]


def test_candidates_empty_table(tmp_path: Path, tmp_home: Path) -> None:
    cfg = tmp_path / "empty.yaml"
    cfg.write_text(
        "prepend: []\ncandidates:\n  linux: []\n  posix: []\n", encoding="utf-8"
    )
    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(cfg), "candidates"],
        {"HOME": str(tmp_home)},
    )

    assert code == 0
    assert outputs == ["[linux] (no candidates configured)"]


# -------------------------------------------------------------------
# exec
# -------------------------------------------------------------------


def test_exec_runs_child_with_assembled_path(
    toolchain: Path, tmp_home: Path, tmp_path: Path
) -> None:
    out = tmp_path / "seen.txt"
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    code = (
        "import os, pathlib; "
        f"pathlib.Path({str(out)!r}).write_text(os.environ['PATH'])"
    )
    exit_code, outputs = run_cli(
        ["--platform", "linux", "--config", str(toolchain),
         "exec", "--", sys.executable, "-c", code],
        env,
    )

    assert exit_code == 0
    assert outputs == []
    assert out.read_text() == f"{tmp_home}/.cargo/bin:/usr/bin"


def test_exec_returns_child_exit_code(toolchain: Path, tmp_home: Path) -> None:
    env = {"PATH": "/usr/bin", "HOME": str(tmp_home)}
    exit_code, _ = run_cli(
        ["--platform", "linux", "--config", str(toolchain),
         "exec", sys.executable, "-c", "import sys; sys.exit(5)"],
        env,
    )
    assert exit_code == 5


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_exec_child_killed_by_sigterm_exits_143(
    toolchain: Path, tmp_home: Path
) -> None:
    """A signal death maps to 128 + N so the shell sees a valid status."""
    exit_code, _ = run_cli(
        ["--platform", "linux", "--config", str(toolchain),
         "exec", "--", sys.executable, "-c",
         "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"],
        {"PATH": "/usr/bin", "HOME": str(tmp_home)},
    )
    assert exit_code == 143


def test_exec_without_command_is_usage_error(
    toolchain: Path, tmp_home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code, _ = run_cli(
        ["--platform", "linux", "--config", str(toolchain), "exec"],
        {"HOME": str(tmp_home)},
    )
    assert exit_code == 2
    assert "[ERR] exec needs a command" in capsys.readouterr().err


def test_exec_missing_program_reports_error(
    toolchain: Path, tmp_home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code, _ = run_cli(
        ["--platform", "linux", "--config", str(toolchain),
         "exec", "--", "envpath-definitely-not-a-program"],
        {"PATH": "/usr/bin", "HOME": str(tmp_home)},
    )
    assert exit_code == 1
    assert "command not found" in capsys.readouterr().err


# -------------------------------------------------------------------
# Errors and options
# -------------------------------------------------------------------


def test_broken_user_config_warns_and_still_assembles(
    tmp_path: Path, tmp_home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("candidates: [oops\n", encoding="utf-8")

    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(broken), "--shell", "raw"],
        {"PATH": "/usr/bin", "HOME": str(tmp_home)},
    )

    assert code == 0
    assert outputs[0].endswith("/usr/bin")
    assert "[WARN] Ignoring config" in capsys.readouterr().err


def test_unhandled_exception_writes_crash_log_and_prints_nothing(
    toolchain: Path,
    tmp_home: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """stdout stays empty so eval leaves PATH unchanged."""

    def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(cli.Session, "export_statement", boom)

    code, outputs = run_cli(
        ["--platform", "linux", "--config", str(toolchain)],
        {"PATH": "/usr/bin", "HOME": str(tmp_home)},
    )

    assert code == 1
    assert outputs == []
    assert (
        "[ERROR] Unhandled exception: RuntimeError: kaboom"
        in capsys.readouterr().err
    )
    crash_log = tmp_path / "data" / "envpath" / "logs" / "crash.log"
    assert "error=RuntimeError: kaboom" in crash_log.read_text(encoding="utf-8")


def test_no_color_when_stderr_is_not_a_tty(
    tmp_path: Path, tmp_home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("- a list\n", encoding="utf-8")

    run_cli(["--platform", "linux", "--config", str(broken)], {"HOME": str(tmp_home)})

    assert "\033[" not in capsys.readouterr().err


def test_warn_tag_is_colored_on_a_tty(
    tmp_path: Path,
    tmp_home: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("- a list\n", encoding="utf-8")
    monkeypatch.setattr(sys.stderr, "isatty", lambda: True)

    run_cli(["--platform", "linux", "--config", str(broken)], {"HOME": str(tmp_home)})

    err = capsys.readouterr().err
    assert (
        f"{ANSI_COLORS['yellow']}[WARN]{ANSI_COLORS['reset']} Ignoring config"
        in err
    )


def test_no_color_env_disables_color_on_a_tty(
    tmp_path: Path,
    tmp_home: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("- a list\n", encoding="utf-8")
    monkeypatch.setattr(sys.stderr, "isatty", lambda: True)

    run_cli(
        ["--platform", "linux", "--config", str(broken)],
        {"HOME": str(tmp_home), "NO_COLOR": "1"},
    )

    err = capsys.readouterr().err
    assert "[WARN] Ignoring config" in err
    assert "\033[" not in err


def test_unknown_platform_is_rejected() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--platform", "beos"], environ={}, output_fn=lambda s: None)
    assert exc.value.code == 2


def test_version_option(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"], environ={})
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_detected_platform_used_when_not_given(
    toolchain: Path, tmp_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(cli.config, "detect_platform", lambda: "linux")
    code, outputs = run_cli(
        ["--config", str(toolchain), "--shell", "raw"],
        {"PATH": "/usr/bin", "HOME": str(tmp_home)},
    )
    assert code == 0
    assert outputs == [f"{tmp_home}/.cargo/bin:/usr/bin"]
