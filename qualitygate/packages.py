"""Node package manager helpers for the project under check."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

MANIFEST_FILENAME = "package.json"

_LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
)


class ManifestError(RuntimeError):
    """Raised when package.json is missing or cannot be read or written."""


def detect_package_manager(root: Path) -> str:
    """Infer the project's package manager from its lockfile."""
    for lockfile, manager in _LOCKFILES:
        if (root / lockfile).exists():
            return manager
    return "npm"


def install_dev_command(manager: str, packages: Sequence[str]) -> List[str]:
    manager = manager.lower()
    if manager == "pnpm":
        return ["pnpm", "add", "-D", *packages]
    if manager == "yarn":
        return ["yarn", "add", "-D", *packages]
    return ["npm", "install", "--save-dev", *packages]


def run_script_command(manager: str, script: str) -> List[str]:
    manager = manager.lower()
    if manager in {"pnpm", "yarn"}:
        return [manager, script]
    return ["npm", "run", script]


def load_manifest(root: Path) -> Dict[str, Any]:
    """Return the parsed package.json contents."""
    path = root / MANIFEST_FILENAME
    if not path.exists():
        raise ManifestError(f"{MANIFEST_FILENAME} not found in {root}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Failed to read {MANIFEST_FILENAME}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{MANIFEST_FILENAME} must contain a JSON object")
    return data


def write_manifest(root: Path, data: Dict[str, Any]) -> None:
    path = root / MANIFEST_FILENAME
    try:
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to write {MANIFEST_FILENAME}: {exc}") from exc


def has_dev_dependency(manifest: Dict[str, Any], name: str) -> bool:
    dev_dependencies = manifest.get("devDependencies")
    return isinstance(dev_dependencies, dict) and bool(dev_dependencies.get(name))
