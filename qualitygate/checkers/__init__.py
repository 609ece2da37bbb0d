"""Checker adapters and the fixed run order."""

from __future__ import annotations

from typing import List, Sequence

from .base import Checker, Findings, ToolError, ToolResult, ToolRunner, run_tool
from .coverage import CoverageChecker, ProvisioningError
from .eslint import LintChecker
from .typescript import TypeCheckChecker

CHECKER_ORDER: Sequence[str] = ("lint", "typecheck", "coverage")


def build_checkers(
    *,
    coverage_threshold: int = 90,
    runner: ToolRunner | None = None,
) -> List[Checker]:
    """Return the checkers in their mandated order: lint, type-check, coverage."""
    return [
        LintChecker(runner=runner),
        TypeCheckChecker(runner=runner),
        CoverageChecker(threshold=coverage_threshold, runner=runner),
    ]


__all__ = [
    "CHECKER_ORDER",
    "Checker",
    "CoverageChecker",
    "Findings",
    "LintChecker",
    "ProvisioningError",
    "ToolError",
    "ToolResult",
    "TypeCheckChecker",
    "build_checkers",
    "run_tool",
]
