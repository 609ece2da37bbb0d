"""Base classes for checker adapters."""

from __future__ import annotations

import re
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import WHOLE_PROJECT, CheckMode, CheckOutcome, ScopeRule


@dataclass(frozen=True)
class ToolResult:
    """Exit status and merged stdout/stderr of one tool invocation."""

    exit_code: int
    output: str


@dataclass(frozen=True)
class Findings:
    """Error and warning counts recovered from tool output."""

    errors: int = 0
    warnings: int = 0

    @property
    def empty(self) -> bool:
        return self.errors == 0 and self.warnings == 0


class ToolError(RuntimeError):
    """Raised when a tool fails in a way that is not a reported finding."""


ToolRunner = Callable[..., ToolResult]


def run_tool(args: Sequence[str], *, cwd: Path) -> ToolResult:
    """Run a tool to completion, capturing stdout and stderr together."""
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        check=False,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
    )
    return ToolResult(exit_code=completed.returncode, output=completed.stdout or "")


class Checker(ABC):
    """Contract shared by the lint, type-check and coverage adapters."""

    name: str = ""
    title: str = ""
    scope_rule: ScopeRule

    def __init__(self, runner: ToolRunner | None = None) -> None:
        self._runner = runner or run_tool
        self.logger = get_logger(f"checkers.{self.name}")

    def missing_prerequisite(self, root: Path) -> Optional[str]:
        """Return why the checker has nothing to check, or None when it can run."""
        return None

    @abstractmethod
    def build_command(self, root: Path, files: Sequence[str], mode: CheckMode) -> List[str]:
        """Return the argv for one tool invocation."""

    @abstractmethod
    def primary_findings(self, lines: Sequence[str]) -> Findings:
        """Count findings using the tool's documented output format."""

    @abstractmethod
    def fallback_findings(self, lines: Sequence[str]) -> Findings:
        """Count findings using looser marker tokens."""

    def run(self, root: Path, scope: Sequence[str], mode: CheckMode) -> CheckOutcome:
        root = Path(root)
        reason = self.missing_prerequisite(root)
        if reason:
            self.logger.info("%s skipped: %s", self.title, reason)
            return CheckOutcome.from_counts(
                self.name, error_count=0, warning_count=0, files_checked=0, message=reason
            )

        files = list(scope) if mode is CheckMode.INCREMENTAL else []
        if mode is CheckMode.INCREMENTAL and not files:
            self.logger.info("%s: no files to check", self.title)
            return CheckOutcome.from_counts(
                self.name,
                error_count=0,
                warning_count=0,
                files_checked=0,
                message="no files to check",
            )

        command = self.build_command(root, files, mode)
        if files:
            self.logger.info("Checking %d changed files with %s", len(files), self.title)
            for path in files:
                self.logger.debug("  - %s", path)
        else:
            self.logger.info("Running whole-project %s check", self.title)
        self.logger.info("Running: %s", shlex.join(command))

        result = self._runner(command, cwd=root)
        files_checked = len(files) if mode is CheckMode.INCREMENTAL else WHOLE_PROJECT
        return self.interpret(result, root=root, files_checked=files_checked)

    def interpret(self, result: ToolResult, *, root: Path, files_checked: int) -> CheckOutcome:
        output = clean_output(result.output, root)
        findings = self.count_findings(output, result.exit_code)
        message = self.summarize(findings, files_checked)
        return CheckOutcome.from_counts(
            self.name,
            error_count=findings.errors,
            warning_count=findings.warnings,
            files_checked=files_checked,
            message=message,
            output=output,
        )

    def count_findings(self, output: str, exit_code: int) -> Findings:
        lines = [line for line in output.splitlines() if line.strip()]
        findings = self.primary_findings(lines)
        if findings.empty and exit_code != 0:
            findings = self.fallback_findings(lines)
        if findings.empty and exit_code != 0:
            self.logger.warning(
                "%s exited with status %d without recognizable findings", self.title, exit_code
            )
            findings = Findings(errors=1)
        return findings

    def summarize(self, findings: Findings, files_checked: int) -> str:
        scope = describe_file_count(files_checked)
        if findings.errors:
            return f"{findings.errors} errors, {findings.warnings} warnings ({scope})"
        if findings.warnings:
            return f"passed with {findings.warnings} warnings ({scope})"
        return f"passed ({scope})"


def describe_file_count(files_checked: int) -> str:
    if files_checked == WHOLE_PROJECT:
        return "whole project"
    if files_checked == 1:
        return "1 file"
    return f"{files_checked} files"


def clean_output(output: str, root: Path) -> str:
    """Replace absolute project paths in tool output with '.'."""
    cleaned = output
    for prefix in _root_variants(root):
        cleaned = cleaned.replace(prefix, ".")
    return cleaned.strip()


def count_matches(lines: Iterable[str], patterns: Tuple[re.Pattern[str], re.Pattern[str]]) -> Findings:
    error_pattern, warning_pattern = patterns
    errors = 0
    warnings = 0
    for line in lines:
        if error_pattern.search(line):
            errors += 1
        elif warning_pattern.search(line):
            warnings += 1
    return Findings(errors=errors, warnings=warnings)


def _root_variants(root: Path) -> List[str]:
    variants = {str(root)}
    try:
        variants.add(str(root.resolve()))
    except OSError:
        pass
    # Longest first so a resolved path is not half-replaced by a shorter alias.
    return sorted((variant for variant in variants if variant not in {"", "."}), key=len, reverse=True)
