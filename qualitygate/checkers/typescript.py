"""TypeScript compiler (tsc) adapter."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..models import CheckMode, ScopeRule
from ..scope import TYPESCRIPT_EXCLUDES, TYPESCRIPT_EXTENSIONS
from .base import Checker, Findings

TSCONFIG = "tsconfig.json"

_ERROR_LINE = re.compile(r":\s*error\s+TS\d+")
_WARNING_LINE = re.compile(r":\s*warning\s+TS\d+")
_FOUND_ERRORS = re.compile(r"Found (\d+) errors?")
# --pretty output: src/a.ts:10:5 - error TS2322: ...
_PRETTY_ERROR = re.compile(r"\berror\s+TS\d+")
_PRETTY_WARNING = re.compile(r"\bwarning\s+TS\d+")


class TypeCheckChecker(Checker):
    """Runs ``tsc --noEmit`` over changed files or the whole project."""

    name = "typecheck"
    title = "TypeScript"
    scope_rule = ScopeRule(
        allowed_extensions=TYPESCRIPT_EXTENSIONS,
        include_directories=("src",),
        exclude_patterns=TYPESCRIPT_EXCLUDES,
    )

    def missing_prerequisite(self, root: Path) -> Optional[str]:
        if not (root / TSCONFIG).exists():
            return f"{TSCONFIG} not found, nothing to type-check"
        return None

    def build_command(self, root: Path, files: Sequence[str], mode: CheckMode) -> List[str]:
        command = ["npx", "tsc", "--noEmit", "--skipLibCheck"]
        if mode is CheckMode.FULL:
            return [*command, "--project", TSCONFIG]
        return [*command, *files]

    def primary_findings(self, lines: Sequence[str]) -> Findings:
        errors = 0
        warnings = 0
        reported_total = 0
        for line in lines:
            if _ERROR_LINE.search(line):
                errors += 1
            elif _WARNING_LINE.search(line):
                warnings += 1
            else:
                match = _FOUND_ERRORS.search(line)
                if match:
                    reported_total = max(reported_total, int(match.group(1)))
        return Findings(errors=max(errors, reported_total), warnings=warnings)

    def fallback_findings(self, lines: Sequence[str]) -> Findings:
        errors = sum(1 for line in lines if _PRETTY_ERROR.search(line))
        warnings = sum(1 for line in lines if _PRETTY_WARNING.search(line))
        return Findings(errors=errors, warnings=warnings)
