"""Core data models shared across qualitygate components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

WHOLE_PROJECT = -1


class CheckMode(str, Enum):
    """Scope a checker runs against."""

    INCREMENTAL = "incremental"
    FULL = "full"


@dataclass(frozen=True)
class ScopeRule:
    """Extension, directory and exclusion predicates for one checker."""

    allowed_extensions: Tuple[str, ...]
    include_directories: Tuple[str, ...]
    exclude_patterns: Tuple[str, ...] = ()

    def with_directories(self, directories: Sequence[str]) -> "ScopeRule":
        return ScopeRule(
            allowed_extensions=self.allowed_extensions,
            include_directories=tuple(directories),
            exclude_patterns=self.exclude_patterns,
        )

    def with_excludes(self, patterns: Sequence[str]) -> "ScopeRule":
        merged = list(self.exclude_patterns)
        merged.extend(pattern for pattern in patterns if pattern not in merged)
        return ScopeRule(
            allowed_extensions=self.allowed_extensions,
            include_directories=self.include_directories,
            exclude_patterns=tuple(merged),
        )


@dataclass(frozen=True)
class DeployContext:
    """Branches involved in an environment-branch deployment."""

    deploy_branch: str
    mainline_branch: str = "master"


@dataclass(frozen=True)
class ChangeSetRequest:
    """Inputs for change-set resolution."""

    mode: CheckMode
    source_ref: str = ""
    target_ref: str = "master"
    deploy_context: Optional[DeployContext] = None
    scope: Optional[ScopeRule] = None
    remote: str = "origin"


@dataclass(frozen=True)
class ChangeSet:
    """Ordered, de-duplicated repository-relative paths (or scope patterns)."""

    paths: Tuple[str, ...] = ()
    kind: str = "paths"
    strategy: str = "direct"
    diagnostics: Tuple[str, ...] = ()

    @classmethod
    def from_paths(
        cls,
        paths: Sequence[str],
        *,
        kind: str = "paths",
        strategy: str = "direct",
        diagnostics: Sequence[str] = (),
    ) -> "ChangeSet":
        unique: List[str] = []
        seen = set()
        for path in paths:
            if path in seen:
                continue
            seen.add(path)
            unique.append(path)
        return cls(
            paths=tuple(unique),
            kind=kind,
            strategy=strategy,
            diagnostics=tuple(diagnostics),
        )

    @property
    def is_pattern_set(self) -> bool:
        return self.kind == "patterns"

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self):
        return iter(self.paths)


@dataclass
class CheckOutcome:
    """Structured result of a single checker run."""

    checker: str
    success: bool
    error_count: int = 0
    warning_count: int = 0
    files_checked: int = 0
    message: str = ""
    output: str = ""
    skipped: bool = False
    errored: bool = False

    @classmethod
    def from_counts(
        cls,
        checker: str,
        *,
        error_count: int,
        warning_count: int,
        files_checked: int,
        message: str = "",
        output: str = "",
    ) -> "CheckOutcome":
        return cls(
            checker=checker,
            success=error_count == 0,
            error_count=error_count,
            warning_count=warning_count,
            files_checked=files_checked,
            message=message,
            output=output,
        )

    @classmethod
    def skipped_outcome(cls, checker: str, message: str = "disabled") -> "CheckOutcome":
        return cls(checker=checker, success=True, message=message, skipped=True)

    @classmethod
    def from_exception(cls, checker: str, exc: BaseException) -> "CheckOutcome":
        return cls(
            checker=checker,
            success=False,
            error_count=1,
            message=str(exc) or exc.__class__.__name__,
            errored=True,
        )

    @property
    def status(self) -> str:
        if self.skipped:
            return "disabled"
        if self.errored:
            return "errored"
        return "passed" if self.success else "failed"


@dataclass
class AggregateReport:
    """Combined verdict across all checkers of a run."""

    outcomes: List[CheckOutcome] = field(default_factory=list)

    @property
    def overall_success(self) -> bool:
        return all(outcome.success for outcome in self.outcomes)

    @property
    def total_errors(self) -> int:
        return sum(outcome.error_count for outcome in self.outcomes if not outcome.skipped)

    @property
    def total_warnings(self) -> int:
        return sum(outcome.warning_count for outcome in self.outcomes if not outcome.skipped)

    @property
    def exit_code(self) -> int:
        return 0 if self.overall_success else 1
