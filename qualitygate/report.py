"""Renders the end-of-run summary block."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from jinja2 import Environment, FileSystemLoader

from .checkers.base import describe_file_count
from .models import AggregateReport, CheckOutcome

CHECKER_TITLES: Dict[str, str] = {
    "lint": "ESLint",
    "typecheck": "TypeScript",
    "coverage": "TypeScript coverage",
}


class SummaryRenderer:
    """Turns an AggregateReport into the line-oriented summary printed at exit."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["detail"] = outcome_detail
        self._env.filters["verdict"] = verdict_line

    def render(self, report: AggregateReport) -> str:
        template = self._env.get_template("summary.j2")
        return template.render(report=report, titles=CHECKER_TITLES)


def outcome_detail(outcome: CheckOutcome) -> str:
    if outcome.skipped:
        return outcome.status
    if outcome.errored:
        return f"{outcome.status} ({outcome.message})"
    return (
        f"{outcome.status} ({describe_file_count(outcome.files_checked)}, "
        f"{outcome.error_count} errors, {outcome.warning_count} warnings)"
    )


def verdict_line(report: AggregateReport) -> str:
    if report.overall_success:
        if report.total_warnings:
            return f"Quality gate passed with {report.total_warnings} warnings"
        return "Quality gate passed: no issues found"
    return (
        f"Quality gate failed: {report.total_errors} errors, "
        f"{report.total_warnings} warnings"
    )
