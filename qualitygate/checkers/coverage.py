"""Type-coverage adapter built on typescript-coverage-report."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..models import CheckMode, CheckOutcome, ScopeRule
from ..packages import (
    ManifestError,
    detect_package_manager,
    has_dev_dependency,
    install_dev_command,
    load_manifest,
    run_script_command,
    write_manifest,
)
from ..scope import TYPESCRIPT_EXTENSIONS
from .base import Checker, Findings, ToolError, ToolResult, ToolRunner, clean_output
from .typescript import TSCONFIG

REPORTER_PACKAGE = "typescript-coverage-report"
# The reporter's HTML output imports semantic-ui-react without declaring it.
COMPANION_PACKAGES = (REPORTER_PACKAGE, "semantic-ui-react")
SCRIPT_NAME = "ts-coverage"

IGNORE_FILES = (
    "**/*.test.ts",
    "**/*.test.tsx",
    "**/*.spec.ts",
    "**/*.spec.tsx",
    "test/**/*",
    "tests/**/*",
    "__tests__/**/*",
    "**/*.stories.ts",
    "**/*.stories.tsx",
    "scripts/**/*",
    "build/**/*",
    "dist/**/*",
    "node_modules/**/*",
)

# type-coverage summary: "1234 / 1300 94.92%"
_SUMMARY_PATTERN = re.compile(r"(\d+)\s*/\s*(\d+)\s+(\d+(?:\.\d+)?)%")
_PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")
# typescript-coverage-report table cells, boxed or pipe-separated
_CELL_SEPARATOR = re.compile(r"[\u2502\u2503|]|\s{2,}")


class ProvisioningError(RuntimeError):
    """Raised when the coverage reporter cannot be installed or configured."""


class CoverageChecker(Checker):
    """Measures TypeScript type coverage against a percentage threshold."""

    name = "coverage"
    title = "TypeScript coverage"
    scope_rule = ScopeRule(allowed_extensions=TYPESCRIPT_EXTENSIONS, include_directories=(".",))

    def __init__(
        self,
        threshold: int = 90,
        runner: ToolRunner | None = None,
        installer: Callable[..., ToolResult] | None = None,
    ) -> None:
        super().__init__(runner=runner)
        self.threshold = threshold
        self._installer = installer or self._runner

    def missing_prerequisite(self, root: Path) -> Optional[str]:
        if not (root / TSCONFIG).exists():
            return f"{TSCONFIG} not found, nothing to measure"
        return None

    def run(self, root: Path, scope: Sequence[str], mode: CheckMode) -> CheckOutcome:
        root = Path(root)
        if self.missing_prerequisite(root) is None:
            self.ensure_configured(root)
        # Coverage always measures the whole project.
        return super().run(root, scope, CheckMode.FULL)

    def ensure_configured(self, root: Path) -> None:
        """Install the reporter when absent and write its manifest settings."""
        try:
            manifest = load_manifest(root)
        except ManifestError as exc:
            raise ProvisioningError(str(exc)) from exc

        if has_dev_dependency(manifest, REPORTER_PACKAGE):
            self.logger.info("%s already declared in devDependencies", REPORTER_PACKAGE)
        else:
            self._install(root)
            # The install rewrites package.json; reload before editing it.
            try:
                manifest = load_manifest(root)
            except ManifestError as exc:
                raise ProvisioningError(str(exc)) from exc

        scripts = manifest.get("scripts")
        if not isinstance(scripts, dict):
            scripts = {}
        scripts[SCRIPT_NAME] = REPORTER_PACKAGE
        manifest["scripts"] = scripts
        manifest["typeCoverage"] = {
            "atLeast": self.threshold,
            "detail": True,
            "strict": True,
            "cache": True,
            "ignoreFiles": list(IGNORE_FILES),
        }
        try:
            write_manifest(root, manifest)
        except ManifestError as exc:
            raise ProvisioningError(str(exc)) from exc
        self.logger.info("Wrote %s script and typeCoverage settings to package.json", SCRIPT_NAME)

    def build_command(self, root: Path, files: Sequence[str], mode: CheckMode) -> List[str]:
        return run_script_command(detect_package_manager(root), SCRIPT_NAME)

    def interpret(self, result: ToolResult, *, root: Path, files_checked: int) -> CheckOutcome:
        output = clean_output(result.output, root)
        if output:
            self.logger.info("Coverage report output:\n%s", output)
        if result.exit_code not in (0, 1):
            raise ToolError(f"{REPORTER_PACKAGE} exited with status {result.exit_code}")

        lines = [line for line in output.splitlines() if line.strip()]
        # Exit status 1 is the reporter's "below atLeast" signal.
        findings = Findings(errors=1) if result.exit_code == 1 else self.primary_findings(lines)
        percentage = parse_percentage(output)
        measured = f" (measured {percentage:g}%)" if percentage is not None else ""
        if findings.errors:
            message = f"coverage below {self.threshold}%{measured}"
        else:
            message = f"coverage at or above {self.threshold}%{measured}"
        return CheckOutcome.from_counts(
            self.name,
            error_count=findings.errors,
            warning_count=0,
            files_checked=files_checked,
            message=message,
            output=output,
        )

    def primary_findings(self, lines: Sequence[str]) -> Findings:
        percentage = parse_percentage("\n".join(lines))
        if percentage is None:
            return self.fallback_findings(lines)
        return Findings(errors=1 if percentage < self.threshold else 0)

    def fallback_findings(self, lines: Sequence[str]) -> Findings:
        return Findings()

    def _install(self, root: Path) -> None:
        manager = detect_package_manager(root)
        command = install_dev_command(manager, COMPANION_PACKAGES)
        self.logger.info("Installing %s with %s", ", ".join(COMPANION_PACKAGES), manager)
        try:
            result = self._installer(command, cwd=root)
        except (OSError, subprocess.SubprocessError) as exc:
            raise ProvisioningError(f"Failed to install {REPORTER_PACKAGE}: {exc}") from exc
        if result.exit_code != 0:
            raise ProvisioningError(
                f"Failed to install {REPORTER_PACKAGE} (exit status {result.exit_code}): "
                f"{result.output.strip()}"
            )


def parse_percentage(output: str) -> Optional[float]:
    """Return the measured coverage percentage reported in the output, if any.

    The reporter's table carries both a Percent and a Threshold column; only
    the Percent cell is the measurement.
    """
    from_table = _table_percentage(output)
    if from_table is not None:
        return from_table
    match = _SUMMARY_PATTERN.search(output)
    if match:
        return float(match.group(3))
    match = _PERCENT_PATTERN.search(output)
    if match:
        return float(match.group(1))
    return None


def _table_percentage(output: str) -> Optional[float]:
    column: Optional[int] = None
    for line in output.splitlines():
        cells = _cells(line)
        if column is None:
            lowered = [cell.lower() for cell in cells]
            if "percent" in lowered:
                column = lowered.index("percent")
            continue
        if len(cells) <= column:
            continue
        match = _PERCENT_PATTERN.fullmatch(cells[column])
        if match:
            return float(match.group(1))
    return None


def _cells(line: str) -> List[str]:
    return [cell.strip() for cell in _CELL_SEPARATOR.split(line) if cell.strip()]
