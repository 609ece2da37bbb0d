"""ESLint adapter."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..models import CheckMode, ScopeRule
from ..scope import FRONTEND_EXTENSIONS
from .base import Checker, Findings, count_matches

# compact format: /path/file.ts: line 3, col 7, Error - 'x' is defined but never used. (no-unused-vars)
_COMPACT_PATTERNS = (
    re.compile(r":\s*line\s+\d+,\s*col\s+\d+,\s*Error\s*-"),
    re.compile(r":\s*line\s+\d+,\s*col\s+\d+,\s*Warning\s*-"),
)
_MARKER_PATTERNS = (
    re.compile(re.escape("Error -")),
    re.compile(re.escape("Warning -")),
)

ESLINT_CONFIG_FILES = (
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yaml",
    ".eslintrc.yml",
    ".eslintrc",
)


class LintChecker(Checker):
    """Runs ESLint with the compact formatter."""

    name = "lint"
    title = "ESLint"
    scope_rule = ScopeRule(
        allowed_extensions=FRONTEND_EXTENSIONS,
        include_directories=("src",),
    )

    def missing_prerequisite(self, root: Path) -> Optional[str]:
        for filename in ESLINT_CONFIG_FILES:
            if (root / filename).exists():
                self.logger.debug("Found ESLint config %s", filename)
                return None
        # ESLint still runs with its built-in defaults.
        self.logger.warning("No ESLint config file found; ESLint defaults apply")
        return None

    def build_command(self, root: Path, files: Sequence[str], mode: CheckMode) -> List[str]:
        if mode is CheckMode.FULL:
            return ["npx", "eslint", ".", "--format=compact"]
        return ["npx", "eslint", *files, "--format=compact"]

    def primary_findings(self, lines: Sequence[str]) -> Findings:
        return count_matches(lines, _COMPACT_PATTERNS)

    def fallback_findings(self, lines: Sequence[str]) -> Findings:
        errors = sum(1 for line in lines if _MARKER_PATTERNS[0].search(line))
        warnings = sum(1 for line in lines if _MARKER_PATTERNS[1].search(line))
        return Findings(errors=errors, warnings=warnings)
