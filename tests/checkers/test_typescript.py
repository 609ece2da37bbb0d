"""Tests for the TypeScript compiler adapter."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from qualitygate.checkers import TypeCheckChecker
from qualitygate.checkers.base import ToolResult
from qualitygate.models import WHOLE_PROJECT, CheckMode


def _runner(result: ToolResult, calls: List[List[str]]):  # type: ignore[no-untyped-def]
    def run(args, *, cwd):  # type: ignore[no-untyped-def]
        calls.append(list(args))
        return result

    return run


@pytest.fixture
def ts_project(tmp_path: Path) -> Path:
    (tmp_path / "tsconfig.json").write_text('{"compilerOptions": {"strict": true}}\n', encoding="utf-8")
    return tmp_path


def test_typecheck_without_tsconfig_succeeds_trivially(tmp_path: Path) -> None:
    calls: List[List[str]] = []
    checker = TypeCheckChecker(runner=_runner(ToolResult(0, ""), calls))

    outcome = checker.run(tmp_path, ["src/a.ts"], CheckMode.INCREMENTAL)

    assert calls == []
    assert outcome.success
    assert "tsconfig.json not found" in outcome.message


def test_typecheck_incremental_command(ts_project: Path) -> None:
    calls: List[List[str]] = []
    checker = TypeCheckChecker(runner=_runner(ToolResult(0, ""), calls))

    outcome = checker.run(ts_project, ["src/a.ts", "src/b.tsx"], CheckMode.INCREMENTAL)

    assert calls == [["npx", "tsc", "--noEmit", "--skipLibCheck", "src/a.ts", "src/b.tsx"]]
    assert outcome.success
    assert outcome.files_checked == 2


def test_typecheck_full_command_uses_project(ts_project: Path) -> None:
    calls: List[List[str]] = []
    checker = TypeCheckChecker(runner=_runner(ToolResult(0, ""), calls))

    outcome = checker.run(ts_project, [], CheckMode.FULL)

    assert calls == [["npx", "tsc", "--noEmit", "--skipLibCheck", "--project", "tsconfig.json"]]
    assert outcome.files_checked == WHOLE_PROJECT


def test_typecheck_counts_error_lines(ts_project: Path) -> None:
    output = (
        "src/a.ts(3,7): error TS2322: Type 'string' is not assignable to type 'number'.\n"
        "src/b.tsx(10,1): error TS2304: Cannot find name 'foo'.\n"
    )
    checker = TypeCheckChecker(runner=_runner(ToolResult(2, output), []))

    outcome = checker.run(ts_project, ["src/a.ts", "src/b.tsx"], CheckMode.INCREMENTAL)

    assert outcome.error_count == 2
    assert outcome.success is False
    assert outcome.message.startswith("2 errors")


def test_typecheck_trusts_larger_summary_total(ts_project: Path) -> None:
    output = (
        "src/a.ts(3,7): error TS2322: Type 'string' is not assignable to type 'number'.\n"
        "Found 4 errors in 2 files.\n"
    )
    checker = TypeCheckChecker(runner=_runner(ToolResult(2, output), []))

    outcome = checker.run(ts_project, ["src/a.ts"], CheckMode.INCREMENTAL)

    assert outcome.error_count == 4


def test_typecheck_falls_back_to_pretty_output(ts_project: Path) -> None:
    output = "src/a.ts:3:7 - error TS2322 Type mismatch\n"
    checker = TypeCheckChecker(runner=_runner(ToolResult(2, output), []))

    outcome = checker.run(ts_project, ["src/a.ts"], CheckMode.INCREMENTAL)

    assert outcome.error_count == 1
    assert outcome.warning_count == 0


def test_typecheck_unrecognized_failure_counts_one_error(ts_project: Path) -> None:
    checker = TypeCheckChecker(runner=_runner(ToolResult(1, "npx: command not found"), []))

    outcome = checker.run(ts_project, ["src/a.ts"], CheckMode.INCREMENTAL)

    assert outcome.error_count == 1
    assert outcome.success is False
