"""Thin capability surface over the git command line."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional


class GitError(RuntimeError):
    """Raised when a git command fails or cannot be started."""

    def __init__(self, args: Iterable[str], detail: str = "") -> None:
        self.command = list(args)
        self.detail = detail.strip()
        message = f"`{' '.join(self.command)}` failed"
        if self.detail:
            message += f": {self.detail}"
        super().__init__(message)


class GitGateway:
    """Runs the handful of git queries change-set resolution depends on."""

    def __init__(self, repo_path: str | Path, runner: Callable[..., str] | None = None) -> None:
        self.repo = Path(repo_path)
        self._runner = runner or self._default_runner

    def is_work_tree(self) -> bool:
        try:
            output = self._git("rev-parse", "--is-inside-work-tree")
        except GitError:
            return False
        return output.strip() == "true"

    def fetch(self) -> None:
        self._git("fetch", capture_output=False)

    def diff_names(self, base: str, head: str) -> List[str]:
        output = self._git("diff", "--name-only", "-z", base, head)
        return _nul_separated(output)

    def latest_merge_commit(self, branch: str) -> Optional[str]:
        output = self._git(
            "log",
            "--merges",
            "--first-parent",
            branch,
            "-n",
            "1",
            "--pretty=format:%H",
        )
        commits = _lines(output)
        return commits[0] if commits else None

    def parents(self, commit: str) -> List[str]:
        output = self._git("show", "-s", "--pretty=format:%P", commit)
        return output.split()

    def commit_exists(self, commit: str) -> bool:
        try:
            self._git("cat-file", "-e", commit)
        except GitError:
            return False
        return True

    def merge_base(self, first: str, second: str) -> str:
        return self._git("merge-base", first, second).strip()

    # ------------------------------------------------------------------
    # Internals

    def _git(self, *args: str, capture_output: bool = True) -> str:
        command = ["git", *args]
        try:
            return self._runner(command, cwd=self.repo, capture_output=capture_output)
        except subprocess.CalledProcessError as exc:
            raise GitError(command, _stderr_of(exc)) from exc
        except OSError as exc:
            raise GitError(command, str(exc)) from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            encoding="utf-8",
            errors="surrogateescape",
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


def _lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _nul_separated(output: str) -> List[str]:
    # -z output is never quoted or escaped.
    return [entry for entry in output.split("\0") if entry]


def _stderr_of(exc: subprocess.CalledProcessError) -> str:
    stderr = exc.stderr
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr or f"exit status {exc.returncode}"
