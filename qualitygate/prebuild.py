"""Runs the user-supplied build script before any checks."""

from __future__ import annotations

import subprocess
import time
from pathlib import Path
from typing import Callable

from .logging import get_logger


class BuildScriptError(RuntimeError):
    """Raised when the user build script exits non-zero or cannot start."""


def run_user_script(
    root: Path,
    script: str | None,
    runner: Callable[..., object] | None = None,
) -> bool:
    """Execute ``script`` through the shell in ``root``; return False when none is set."""
    logger = get_logger("prebuild")
    if not script or not script.strip():
        logger.info("No user build script configured, skipping")
        return False

    logger.info("Running user build script in %s", root)
    logger.debug("Build script: %s", script)
    started = time.monotonic()
    try:
        (runner or _default_runner)(script, cwd=root)
    except (subprocess.CalledProcessError, OSError) as exc:
        duration = time.monotonic() - started
        logger.error("User build script failed after %.2fs", duration)
        raise BuildScriptError(f"User build script failed: {exc}") from exc
    logger.info("User build script finished in %.2fs", time.monotonic() - started)
    return True


def _default_runner(script: str, *, cwd: Path) -> None:
    subprocess.run(script, cwd=str(cwd), shell=True, check=True, text=True)
