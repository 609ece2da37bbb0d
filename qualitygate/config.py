"""Configuration loading for qualitygate (.qualitygate.yml plus CI step variables)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".qualitygate.yml"

DEFAULT_CHECK_DIRECTORIES = ("src",)
DEFAULT_COVERAGE_THRESHOLD = 90
DEFAULT_TARGET_BRANCH = "master"
DEFAULT_DEPLOY_BRANCH = "develop"
CURRENT_REF = "*"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CheckerConfig:
    """Enablement and scope mode of a file-based checker."""

    enabled: bool = False
    full_check: bool = False


@dataclass
class CoverageConfig:
    """Type-coverage reporting settings."""

    enabled: bool = False
    threshold: int = DEFAULT_COVERAGE_THRESHOLD


@dataclass
class BranchConfig:
    """Branches used to compute the change-set."""

    source: Optional[str] = None
    target: str = DEFAULT_TARGET_BRANCH
    deploy_mode: bool = False
    deploy_branch: str = DEFAULT_DEPLOY_BRANCH
    mainline: Optional[str] = None
    ci_ref: Optional[str] = None
    git_branch: Optional[str] = None


@dataclass
class GateConfig:
    """Represents the settings defined in .qualitygate.yml and the CI environment."""

    root: Path
    lint: CheckerConfig = field(default_factory=CheckerConfig)
    typecheck: CheckerConfig = field(default_factory=CheckerConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    branches: BranchConfig = field(default_factory=BranchConfig)
    check_directories: List[str] = field(default_factory=lambda: list(DEFAULT_CHECK_DIRECTORIES))
    exclude_paths: List[str] = field(default_factory=list)
    user_script: Optional[str] = None
    remote: str = "origin"

    def is_enabled(self, checker: str) -> bool:
        settings = self._settings(checker)
        return bool(settings and settings.enabled)

    def is_full_check(self, checker: str) -> bool:
        if checker == "coverage":
            return True
        settings = self._settings(checker)
        return bool(isinstance(settings, CheckerConfig) and settings.full_check)

    def _settings(self, checker: str) -> CheckerConfig | CoverageConfig | None:
        return {
            "lint": self.lint,
            "typecheck": self.typecheck,
            "coverage": self.coverage,
        }.get(checker)


# Variables exported by the CI step definition, mapped to (section, field).
ENV_BOOL_KEYS: Mapping[str, tuple[str, str]] = {
    "enable_eslint_check": ("lint", "enabled"),
    "full_check_mode": ("lint", "full_check"),
    "enable_typescript_check": ("typecheck", "enabled"),
    "full_typescript_check_mode": ("typecheck", "full_check"),
    "enable_typescript_coverage_report": ("coverage", "enabled"),
    "env_branch_deploy_mode": ("branches", "deploy_mode"),
}

ENV_STR_KEYS: Mapping[str, tuple[str, str]] = {
    "source_branch": ("branches", "source"),
    "target_branch": ("branches", "target"),
    "CI_COMMIT_REF_NAME": ("branches", "ci_ref"),
    "GIT_BRANCH": ("branches", "git_branch"),
}


def load_config(config_path: Path, environ: Mapping[str, str] | None = None) -> GateConfig:
    """Load configuration from disk and apply CI environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    config = GateConfig(root=root)
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
        _apply_file_settings(config, data)

    apply_env_overrides(config, os.environ if environ is None else environ)
    return config


def apply_env_overrides(config: GateConfig, environ: Mapping[str, str]) -> GateConfig:
    """Overlay CI step variables on top of file settings."""
    for key, (section, attr) in ENV_BOOL_KEYS.items():
        raw = environ.get(key)
        if raw is None or not raw.strip():
            continue
        value = _as_bool(raw)
        if value is not None:
            setattr(getattr(config, section), attr, value)

    for key, (section, attr) in ENV_STR_KEYS.items():
        raw = environ.get(key)
        if raw is None or not raw.strip():
            continue
        setattr(getattr(config, section), attr, raw.strip())

    threshold = _as_int(environ.get("typescript_coverage_threshold"))
    if threshold is not None:
        config.coverage.threshold = threshold

    directories = environ.get("check_directories")
    if directories and directories.strip():
        config.check_directories = split_directories(directories)

    script = environ.get("user_script")
    if script and script.strip():
        config.user_script = script

    return config


def split_directories(value: Any) -> List[str]:
    """Split newline-delimited (or list) directory settings into clean entries."""
    if isinstance(value, str):
        parts = re.split(r"[\r\n]+", value)
    else:
        parts = _as_str_list(value)
    return [part.strip() for part in parts if part and part.strip()]


def _apply_file_settings(config: GateConfig, data: Dict[str, Any]) -> None:
    checkers = _as_dict(data.get("checkers"))

    lint_data = _as_dict(checkers.get("lint"))
    if lint_data:
        config.lint = CheckerConfig(
            enabled=_as_bool(lint_data.get("enabled")) or False,
            full_check=_as_bool(lint_data.get("full_check")) or False,
        )

    type_data = _as_dict(checkers.get("typecheck"))
    if type_data:
        config.typecheck = CheckerConfig(
            enabled=_as_bool(type_data.get("enabled")) or False,
            full_check=_as_bool(type_data.get("full_check")) or False,
        )

    coverage_data = _as_dict(checkers.get("coverage"))
    if coverage_data:
        threshold = _as_int(coverage_data.get("threshold"))
        config.coverage = CoverageConfig(
            enabled=_as_bool(coverage_data.get("enabled")) or False,
            threshold=threshold if threshold is not None else DEFAULT_COVERAGE_THRESHOLD,
        )

    branch_data = _as_dict(data.get("branches"))
    if branch_data:
        branches = config.branches
        branches.source = _as_str(branch_data.get("source"))
        branches.target = _as_str(branch_data.get("target")) or DEFAULT_TARGET_BRANCH
        branches.deploy_mode = _as_bool(branch_data.get("deploy_mode")) or False
        branches.deploy_branch = _as_str(branch_data.get("deploy_branch")) or DEFAULT_DEPLOY_BRANCH
        branches.mainline = _as_str(branch_data.get("mainline"))

    if "check_directories" in data:
        directories = split_directories(data.get("check_directories"))
        if directories:
            config.check_directories = directories

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    config.user_script = _as_str(data.get("user_script"))
    config.remote = _as_str(data.get("remote")) or "origin"


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
