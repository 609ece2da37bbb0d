"""Narrowing change-sets down to the files a checker cares about."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Sequence

from .logging import get_logger
from .models import ScopeRule

FRONTEND_EXTENSIONS = (".js", ".ts", ".jsx", ".tsx", ".vue")
TYPESCRIPT_EXTENSIONS = (".ts", ".tsx", ".vue")
TYPESCRIPT_EXCLUDES = (
    "node_modules/",
    "lib/",
    "dist/",
    "test/",
    ".test.ts",
    ".spec.ts",
)

_ROOT_DIRECTORIES = {"", "."}


class FileScopeFilter:
    """Applies a ScopeRule plus an on-disk existence check to a path list."""

    def __init__(self) -> None:
        self.logger = get_logger("scope")

    def filter(self, paths: Iterable[str], rule: ScopeRule, root: str | Path) -> List[str]:
        root_path = Path(root)
        kept: List[str] = []
        seen = set()
        for raw in paths:
            path = normalize_path(raw)
            if not path or path in seen:
                continue
            seen.add(path)
            reason = self._rejection(path, rule, root_path)
            if reason:
                self.logger.debug("Skipping %s (%s)", path, reason)
                continue
            kept.append(path)
        return kept

    @staticmethod
    def _rejection(path: str, rule: ScopeRule, root: Path) -> str | None:
        if not has_allowed_extension(path, rule.allowed_extensions):
            return "extension not checked"
        if not in_directories(path, rule.include_directories):
            return "outside check directories"
        if matches_exclude(path, rule.exclude_patterns):
            return "excluded"
        if not (root / path).is_file():
            return "deleted"
        return None


def full_scope_patterns(rule: ScopeRule) -> List[str]:
    """Return one glob per (include directory, extension) pair."""
    patterns: List[str] = []
    for directory in rule.include_directories:
        prefix = _normalize_directory(directory)
        for extension in rule.allowed_extensions:
            suffix = f"**/*{extension}"
            patterns.append(suffix if prefix in _ROOT_DIRECTORIES else f"{prefix}/{suffix}")
    return patterns


def normalize_path(path: str) -> str:
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def has_allowed_extension(path: str, extensions: Sequence[str]) -> bool:
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def in_directories(path: str, directories: Sequence[str]) -> bool:
    for directory in directories:
        prefix = _normalize_directory(directory)
        if prefix in _ROOT_DIRECTORIES:
            return True
        if path.startswith(f"{prefix}/"):
            return True
    return False


def matches_exclude(path: str, patterns: Sequence[str]) -> bool:
    return any(_exclude_matches(path, pattern) for pattern in patterns)


def _exclude_matches(path: str, pattern: str) -> bool:
    pattern = pattern.strip().replace("\\", "/")
    if not pattern:
        return False
    if pattern.endswith("/"):
        return path.startswith(pattern) or f"/{pattern}" in path
    if any(ch in pattern for ch in "*?["):
        return fnmatch(path, pattern)
    return pattern in path


def _normalize_directory(directory: str) -> str:
    return normalize_path(directory).rstrip("/")


__all__ = [
    "FRONTEND_EXTENSIONS",
    "TYPESCRIPT_EXCLUDES",
    "TYPESCRIPT_EXTENSIONS",
    "FileScopeFilter",
    "full_scope_patterns",
]
