"""Tests for the user build script hook."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from qualitygate.prebuild import BuildScriptError, run_user_script


def test_run_user_script_skips_when_unset(tmp_path: Path) -> None:
    calls: list[str] = []

    assert run_user_script(tmp_path, None, runner=lambda script, cwd: calls.append(script)) is False
    assert run_user_script(tmp_path, "   ", runner=lambda script, cwd: calls.append(script)) is False
    assert calls == []


def test_run_user_script_runs_in_project_root(tmp_path: Path) -> None:
    calls: list[tuple[str, Path]] = []

    def runner(script, *, cwd):  # type: ignore[no-untyped-def]
        calls.append((script, cwd))

    assert run_user_script(tmp_path, "npm ci && npm run build", runner=runner) is True
    assert calls == [("npm ci && npm run build", tmp_path)]


def test_run_user_script_failure_raises(tmp_path: Path) -> None:
    def runner(script, *, cwd):  # type: ignore[no-untyped-def]
        raise subprocess.CalledProcessError(2, script)

    with pytest.raises(BuildScriptError):
        run_user_script(tmp_path, "exit 2", runner=runner)


def test_run_user_script_uses_shell_by_default(tmp_path: Path) -> None:
    assert run_user_script(tmp_path, "echo built > marker.txt") is True
    assert (tmp_path / "marker.txt").read_text(encoding="utf-8").strip() == "built"
