"""Tests for the type-coverage adapter and its package.json provisioning."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

from qualitygate.checkers import CoverageChecker
from qualitygate.checkers.base import ToolError, ToolResult
from qualitygate.checkers.coverage import (
    REPORTER_PACKAGE,
    SCRIPT_NAME,
    ProvisioningError,
    parse_percentage,
)
from qualitygate.models import WHOLE_PROJECT, CheckMode


class FakeInstaller:
    """Records install commands and simulates the package manager editing package.json."""

    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.calls: List[List[str]] = []

    def __call__(self, args, *, cwd):  # type: ignore[no-untyped-def]
        self.calls.append(list(args))
        if self.exit_code == 0:
            manifest_path = Path(cwd) / "package.json"
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
            manifest.setdefault("devDependencies", {})[REPORTER_PACKAGE] = "^2.0.0"
            manifest_path.write_text(json.dumps(manifest), encoding="utf-8")
        return ToolResult(exit_code=self.exit_code, output="")


class FakeRunner:
    def __init__(self, result: ToolResult) -> None:
        self.result = result
        self.calls: List[List[str]] = []

    def __call__(self, args, *, cwd):  # type: ignore[no-untyped-def]
        self.calls.append(list(args))
        return self.result


@pytest.fixture
def node_project(tmp_path: Path) -> Path:
    (tmp_path / "tsconfig.json").write_text("{}\n", encoding="utf-8")
    manifest = {"name": "web", "scripts": {"build": "tsc"}}
    (tmp_path / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    return tmp_path


def _manifest(root: Path) -> dict:
    return json.loads((root / "package.json").read_text(encoding="utf-8"))


def test_coverage_provisions_reporter_and_writes_settings(node_project: Path) -> None:
    installer = FakeInstaller()
    runner = FakeRunner(ToolResult(0, "1234 / 1300 94.92%\n"))
    checker = CoverageChecker(threshold=90, runner=runner, installer=installer)

    outcome = checker.run(node_project, [], CheckMode.FULL)

    assert installer.calls == [
        ["npm", "install", "--save-dev", REPORTER_PACKAGE, "semantic-ui-react"]
    ]
    manifest = _manifest(node_project)
    assert manifest["scripts"] == {"build": "tsc", SCRIPT_NAME: REPORTER_PACKAGE}
    assert manifest["typeCoverage"]["atLeast"] == 90
    assert manifest["typeCoverage"]["strict"] is True
    assert "**/*.test.ts" in manifest["typeCoverage"]["ignoreFiles"]
    assert runner.calls == [["npm", "run", SCRIPT_NAME]]
    assert outcome.success
    assert outcome.files_checked == WHOLE_PROJECT
    assert outcome.message == "coverage at or above 90% (measured 94.92%)"


def test_coverage_skips_install_when_reporter_declared(node_project: Path) -> None:
    manifest = _manifest(node_project)
    manifest["devDependencies"] = {REPORTER_PACKAGE: "^2.0.0"}
    (node_project / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    installer = FakeInstaller()
    checker = CoverageChecker(runner=FakeRunner(ToolResult(0, "")), installer=installer)

    checker.run(node_project, [], CheckMode.FULL)
    first = _manifest(node_project)
    checker.run(node_project, [], CheckMode.FULL)

    assert installer.calls == []
    assert _manifest(node_project) == first


@pytest.mark.parametrize(
    ("lockfile", "install", "run"),
    [
        ("pnpm-lock.yaml", ["pnpm", "add", "-D"], ["pnpm", SCRIPT_NAME]),
        ("yarn.lock", ["yarn", "add", "-D"], ["yarn", SCRIPT_NAME]),
        ("package-lock.json", ["npm", "install", "--save-dev"], ["npm", "run", SCRIPT_NAME]),
    ],
)
def test_coverage_uses_detected_package_manager(
    node_project: Path, lockfile: str, install: List[str], run: List[str]
) -> None:
    (node_project / lockfile).write_text("", encoding="utf-8")
    installer = FakeInstaller()
    runner = FakeRunner(ToolResult(0, ""))
    checker = CoverageChecker(runner=runner, installer=installer)

    checker.run(node_project, [], CheckMode.FULL)

    assert installer.calls[0][: len(install)] == install
    assert runner.calls == [run]


def test_coverage_exit_one_means_below_threshold(node_project: Path) -> None:
    checker = CoverageChecker(
        threshold=95,
        runner=FakeRunner(ToolResult(1, "1234 / 1300 94.92%\n")),
        installer=FakeInstaller(),
    )

    outcome = checker.run(node_project, [], CheckMode.FULL)

    assert outcome.success is False
    assert outcome.error_count == 1
    assert outcome.message == "coverage below 95% (measured 94.92%)"


def test_coverage_compares_percentage_when_exit_is_clean(node_project: Path) -> None:
    checker = CoverageChecker(
        threshold=98,
        runner=FakeRunner(ToolResult(0, "type coverage: 97.5%\n")),
        installer=FakeInstaller(),
    )

    outcome = checker.run(node_project, [], CheckMode.FULL)

    assert outcome.success is False
    assert outcome.error_count == 1


def test_coverage_unexpected_exit_raises_tool_error(node_project: Path) -> None:
    checker = CoverageChecker(
        runner=FakeRunner(ToolResult(127, "sh: typescript-coverage-report: not found")),
        installer=FakeInstaller(),
    )

    with pytest.raises(ToolError):
        checker.run(node_project, [], CheckMode.FULL)


def test_coverage_install_failure_raises_provisioning_error(node_project: Path) -> None:
    runner = FakeRunner(ToolResult(0, ""))
    checker = CoverageChecker(runner=runner, installer=FakeInstaller(exit_code=1))

    with pytest.raises(ProvisioningError):
        checker.run(node_project, [], CheckMode.FULL)
    assert runner.calls == []


def test_coverage_missing_manifest_raises_provisioning_error(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text("{}\n", encoding="utf-8")
    checker = CoverageChecker(runner=FakeRunner(ToolResult(0, "")), installer=FakeInstaller())

    with pytest.raises(ProvisioningError):
        checker.run(tmp_path, [], CheckMode.FULL)


def test_coverage_without_tsconfig_succeeds_without_provisioning(tmp_path: Path) -> None:
    installer = FakeInstaller()
    runner = FakeRunner(ToolResult(0, ""))
    checker = CoverageChecker(runner=runner, installer=installer)

    outcome = checker.run(tmp_path, [], CheckMode.FULL)

    assert outcome.success
    assert installer.calls == []
    assert runner.calls == []
    assert not (tmp_path / "package.json").exists()


def test_parse_percentage_prefers_summary_line() -> None:
    output = "50% of files scanned\n1234 / 1300 94.92%\nthreshold 90%\n"

    assert parse_percentage(output) == pytest.approx(94.92)
    assert parse_percentage("coverage 88.5 %") == pytest.approx(88.5)
    assert parse_percentage("no numbers here") is None


REPORT_TABLE = """\
┌─────────┬───────────┬───────┬─────────┬───────────┐
│ Percent │ Threshold │ Total │ Covered │ Uncovered │
├─────────┼───────────┼───────┼─────────┼───────────┤
│ {percent}  │ 90%       │ 1300  │ 1106    │ 194       │
└─────────┴───────────┴───────┴─────────┴───────────┘
"""


def test_coverage_reports_measured_percent_not_threshold_column(node_project: Path) -> None:
    checker = CoverageChecker(
        threshold=90,
        runner=FakeRunner(ToolResult(1, REPORT_TABLE.format(percent="85.12%"))),
        installer=FakeInstaller(),
    )

    outcome = checker.run(node_project, [], CheckMode.FULL)

    assert outcome.success is False
    assert outcome.message == "coverage below 90% (measured 85.12%)"


def test_coverage_table_above_threshold_passes(node_project: Path) -> None:
    checker = CoverageChecker(
        threshold=90,
        runner=FakeRunner(ToolResult(0, REPORT_TABLE.format(percent="92.50%"))),
        installer=FakeInstaller(),
    )

    outcome = checker.run(node_project, [], CheckMode.FULL)

    assert outcome.success
    assert outcome.message == "coverage at or above 90% (measured 92.5%)"


def test_parse_percentage_reads_pipe_table_and_first_bare_percentage() -> None:
    table = "| Percent | Threshold |\n|---|---|\n| 71.3% | 80% |\n"

    assert parse_percentage(table) == pytest.approx(71.3)
    assert parse_percentage("measured 64% against a 90% target") == pytest.approx(64)
