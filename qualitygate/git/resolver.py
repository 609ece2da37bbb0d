"""Change-set resolution for incremental and full quality checks.

Direct mode diffs the target branch against the source branch (or HEAD).
Branch-deploy mode reconstructs the contribution of the feature branch most
recently merged into an environment branch:

1. find the latest merge commit on the deploy branch's first-parent history;
2. take its second parent, the tip of the merged feature branch;
3. make sure that commit is reachable;
4. compute the merge-base of ``<remote>/<mainline>`` and the feature tip;
5. diff the merge-base against the feature tip.

Every step either hands its result to the next one or signals a fallback, in
which case the request is resolved in direct mode instead. Resolution never
raises for history-shape problems; it degrades and records diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..logging import get_logger
from ..models import ChangeSet, ChangeSetRequest, CheckMode, DeployContext
from ..scope import full_scope_patterns
from .gateway import GitError, GitGateway


@dataclass(frozen=True)
class Fallback:
    """Signals that branch-deploy traversal cannot continue."""

    reason: str
    level: int = logging.WARNING


@dataclass(frozen=True)
class TraversalState:
    """Values accumulated while walking deploy-branch history."""

    deploy_branch: str
    mainline_ref: str
    merge_commit: Optional[str] = None
    dev_end: Optional[str] = None
    base_commit: Optional[str] = None
    files: Tuple[str, ...] = ()


StepResult = Union[TraversalState, Fallback]
Step = Callable[[TraversalState], StepResult]


class ChangeSetResolver:
    """Turns a ChangeSetRequest into a ChangeSet."""

    def __init__(self, gateway: GitGateway | None = None, repo_path: str | Path | None = None) -> None:
        if gateway is None:
            gateway = GitGateway(repo_path or Path.cwd())
        self.gateway = gateway
        self.logger = get_logger("resolver")

    def resolve(self, request: ChangeSetRequest) -> ChangeSet:
        if request.mode is CheckMode.FULL:
            return self._resolve_full(request)

        diagnostics: List[str] = []
        self._fetch(diagnostics)
        if request.deploy_context is not None:
            return self._resolve_branch_deploy(request, request.deploy_context, diagnostics)
        return self._resolve_direct(request, diagnostics)

    # ------------------------------------------------------------------
    # Full mode

    def _resolve_full(self, request: ChangeSetRequest) -> ChangeSet:
        if request.scope is None:
            return ChangeSet(kind="patterns", strategy="full")
        patterns = full_scope_patterns(request.scope)
        self.logger.info("Full check scope: %s", ", ".join(patterns) or "(none)")
        return ChangeSet.from_paths(patterns, kind="patterns", strategy="full")

    # ------------------------------------------------------------------
    # Direct mode

    def _resolve_direct(self, request: ChangeSetRequest, diagnostics: List[str]) -> ChangeSet:
        base = _remote_ref(request.remote, request.target_ref)
        head = _remote_ref(request.remote, request.source_ref) if request.source_ref else "HEAD"
        self.logger.info("Resolving changed files: %s -> %s", base, head)
        try:
            files = self.gateway.diff_names(base, head)
        except GitError as exc:
            self._diagnose(diagnostics, logging.ERROR, f"Failed to diff {base}..{head}: {exc}")
            return ChangeSet.from_paths([], strategy="direct", diagnostics=diagnostics)
        self.logger.info("Found %d changed files", len(files))
        return ChangeSet.from_paths(files, strategy="direct", diagnostics=diagnostics)

    # ------------------------------------------------------------------
    # Branch-deploy mode

    def _resolve_branch_deploy(
        self,
        request: ChangeSetRequest,
        context: DeployContext,
        diagnostics: List[str],
    ) -> ChangeSet:
        state = TraversalState(
            deploy_branch=context.deploy_branch,
            mainline_ref=_remote_ref(request.remote, context.mainline_branch),
        )
        self.logger.info(
            "Branch-deploy mode: deploy branch=%s, mainline=%s",
            context.deploy_branch,
            context.mainline_branch,
        )

        for name, step in self.traversal_steps():
            try:
                result = step(state)
            except Exception as exc:
                result = Fallback(f"{name} step failed: {exc}", logging.ERROR)
            if isinstance(result, Fallback):
                self._diagnose(diagnostics, result.level, result.reason)
                self._diagnose(diagnostics, logging.WARNING, "Falling back to direct change detection")
                return self._resolve_direct(request, diagnostics)
            state = result

        self.logger.info("Branch-deploy mode found %d changed files", len(state.files))
        return ChangeSet.from_paths(state.files, strategy="branch-deploy", diagnostics=diagnostics)

    def traversal_steps(self) -> Sequence[Tuple[str, Step]]:
        return (
            ("merge-commit", self._find_merge_commit),
            ("parents", self._find_dev_end),
            ("verify", self._verify_dev_end),
            ("merge-base", self._find_divergence_point),
            ("diff", self._diff_branch),
        )

    def _find_merge_commit(self, state: TraversalState) -> StepResult:
        commit = self.gateway.latest_merge_commit(state.deploy_branch)
        if not commit:
            return Fallback(f"No merge commit found on {state.deploy_branch}")
        self.logger.info("Latest merge commit: %s", commit)
        return replace(state, merge_commit=commit)

    def _find_dev_end(self, state: TraversalState) -> StepResult:
        if not state.merge_commit:
            return Fallback("No merge commit to inspect")
        parents = self.gateway.parents(state.merge_commit)
        if len(parents) < 2:
            return Fallback(
                f"Merge commit {state.merge_commit} has {len(parents)} parent(s), expected 2"
            )
        self.logger.info("Merged branch tip: %s", parents[1])
        return replace(state, dev_end=parents[1])

    def _verify_dev_end(self, state: TraversalState) -> StepResult:
        if not state.dev_end:
            return Fallback("No merged branch tip to verify", logging.ERROR)
        if not self.gateway.commit_exists(state.dev_end):
            return Fallback(f"Commit {state.dev_end} does not exist", logging.ERROR)
        return state

    def _find_divergence_point(self, state: TraversalState) -> StepResult:
        if not state.dev_end:
            return Fallback("No merged branch tip to compare with the mainline")
        base = self.gateway.merge_base(state.mainline_ref, state.dev_end)
        if not base:
            return Fallback(f"No merge-base between {state.mainline_ref} and {state.dev_end}")
        self.logger.info("Branch divergence point: %s", base)
        return replace(state, base_commit=base)

    def _diff_branch(self, state: TraversalState) -> StepResult:
        if not state.base_commit or not state.dev_end:
            return Fallback("Branch range is incomplete, nothing to diff")
        files = self.gateway.diff_names(state.base_commit, state.dev_end)
        return replace(state, files=tuple(files))

    # ------------------------------------------------------------------
    # Helpers

    def _fetch(self, diagnostics: List[str]) -> None:
        try:
            self.gateway.fetch()
        except GitError as exc:
            self._diagnose(
                diagnostics,
                logging.WARNING,
                f"git fetch failed, using local remote-tracking refs: {exc}",
            )

    def _diagnose(self, diagnostics: List[str], level: int, message: str) -> None:
        self.logger.log(level, message)
        diagnostics.append(message)


def _remote_ref(remote: str, branch: str) -> str:
    if not remote or branch == "HEAD" or branch.startswith(f"{remote}/"):
        return branch
    return f"{remote}/{branch}"


__all__ = ["ChangeSetResolver", "Fallback", "TraversalState"]
