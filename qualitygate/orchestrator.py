"""Runs the configured checkers in order and aggregates their outcomes."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .checkers import CHECKER_ORDER, Checker, build_checkers
from .config import CURRENT_REF, GateConfig
from .git.gateway import GitGateway
from .git.resolver import ChangeSetResolver
from .logging import get_logger
from .models import (
    AggregateReport,
    ChangeSet,
    ChangeSetRequest,
    CheckMode,
    CheckOutcome,
    DeployContext,
    ScopeRule,
)
from .prebuild import run_user_script
from .scope import FileScopeFilter


class PrerequisiteError(RuntimeError):
    """Raised when the whole run cannot proceed, e.g. outside a git work tree."""


class RunOrchestrator:
    """Coordinates change-set resolution, checker execution and aggregation."""

    def __init__(
        self,
        gateway_factory: Callable[[Path], GitGateway] | None = None,
        scope_filter: FileScopeFilter | None = None,
        checkers: Optional[Iterable[Checker]] = None,
        script_runner: Callable[..., object] | None = None,
    ) -> None:
        self._gateway_factory = gateway_factory or GitGateway
        self.scope_filter = scope_filter or FileScopeFilter()
        self._checker_overrides = list(checkers) if checkers is not None else None
        self._script_runner = script_runner
        self.logger = get_logger("orchestrator")

    def run(self, config: GateConfig) -> AggregateReport:
        root = Path(config.root)
        self._log_configuration(config)
        run_user_script(root, config.user_script, runner=self._script_runner)

        checkers = self._select_checkers(config)
        resolver = ChangeSetResolver(self._gateway_factory(root))

        change_set: ChangeSet | None = None
        if any(
            config.is_enabled(checker.name) and not config.is_full_check(checker.name)
            for checker in checkers
        ):
            self.ensure_work_tree(resolver.gateway, root)
            change_set = resolver.resolve(self.build_request(config, CheckMode.INCREMENTAL))

        report = AggregateReport()
        for checker in checkers:
            outcome = self._run_checker(checker, config, resolver, change_set)
            self._log_outcome(checker, outcome)
            report.outcomes.append(outcome)

        if report.overall_success:
            self.logger.info(
                "Quality gate passed (%d warnings)", report.total_warnings
            )
        else:
            self.logger.error(
                "Quality gate failed: %d errors, %d warnings",
                report.total_errors,
                report.total_warnings,
            )
        return report

    def resolve_changes(self, config: GateConfig) -> ChangeSet:
        """Resolve the incremental change-set without running any checker."""
        root = Path(config.root)
        resolver = ChangeSetResolver(self._gateway_factory(root))
        self.ensure_work_tree(resolver.gateway, root)
        return resolver.resolve(self.build_request(config, CheckMode.INCREMENTAL))

    def build_request(
        self,
        config: GateConfig,
        mode: CheckMode,
        scope: ScopeRule | None = None,
    ) -> ChangeSetRequest:
        branches = config.branches
        deploy_context = None
        source_ref = self._current_source_ref(config)
        if branches.deploy_mode:
            if branches.source and branches.source != CURRENT_REF:
                self.logger.warning(
                    "Branch-deploy mode ignores the configured source branch %s", branches.source
                )
            source_ref = ""
            deploy_context = DeployContext(
                deploy_branch=branches.ci_ref or branches.deploy_branch,
                mainline_branch=branches.mainline or branches.target,
            )
        return ChangeSetRequest(
            mode=mode,
            source_ref=source_ref,
            target_ref=branches.target,
            deploy_context=deploy_context,
            scope=scope,
            remote=config.remote,
        )

    @staticmethod
    def ensure_work_tree(gateway: GitGateway, root: Path) -> None:
        if not gateway.is_work_tree():
            raise PrerequisiteError(
                f"{root} is not inside a git work tree; incremental checks need git history"
            )

    # ------------------------------------------------------------------
    # Internals

    def _select_checkers(self, config: GateConfig) -> List[Checker]:
        if self._checker_overrides is not None:
            checkers = list(self._checker_overrides)
        else:
            checkers = build_checkers(coverage_threshold=config.coverage.threshold)
        order = {name: index for index, name in enumerate(CHECKER_ORDER)}
        return sorted(checkers, key=lambda checker: order.get(checker.name, len(order)))

    def _run_checker(
        self,
        checker: Checker,
        config: GateConfig,
        resolver: ChangeSetResolver,
        change_set: ChangeSet | None,
    ) -> CheckOutcome:
        if not config.is_enabled(checker.name):
            self.logger.info("%s is disabled, skipping", checker.title)
            return CheckOutcome.skipped_outcome(checker.name)

        self.logger.info("Starting %s check", checker.title)
        rule = checker.scope_rule.with_excludes(config.exclude_paths)
        if checker.name != "coverage":
            rule = rule.with_directories(config.check_directories)
        try:
            if config.is_full_check(checker.name):
                patterns = resolver.resolve(self.build_request(config, CheckMode.FULL, scope=rule))
                return checker.run(config.root, patterns.paths, CheckMode.FULL)
            paths = change_set.paths if change_set is not None else ()
            scope = self.scope_filter.filter(paths, rule, config.root)
            return checker.run(config.root, scope, CheckMode.INCREMENTAL)
        except Exception as exc:
            self.logger.error("%s check raised an error: %s", checker.title, exc)
            self.logger.debug("%s failure details", checker.title, exc_info=True)
            return CheckOutcome.from_exception(checker.name, exc)

    def _current_source_ref(self, config: GateConfig) -> str:
        branches = config.branches
        source = (branches.source or CURRENT_REF).strip()
        if source == CURRENT_REF:
            return branches.ci_ref or branches.git_branch or ""
        return source

    def _log_configuration(self, config: GateConfig) -> None:
        branches = config.branches
        self.logger.info("Project directory: %s", config.root)
        self.logger.info("ESLint check enabled: %s", config.lint.enabled)
        self.logger.info("TypeScript check enabled: %s", config.typecheck.enabled)
        self.logger.info("TypeScript coverage enabled: %s", config.coverage.enabled)
        if config.coverage.enabled:
            self.logger.info("TypeScript coverage threshold: %d%%", config.coverage.threshold)
        self.logger.info("Branch-deploy mode: %s", branches.deploy_mode)
        self.logger.info("Source branch: %s", self._current_source_ref(config) or "HEAD")
        self.logger.info("Target branch: %s", branches.target)
        self.logger.info("ESLint mode: %s", "full" if config.lint.full_check else "incremental")
        self.logger.info(
            "TypeScript mode: %s", "full" if config.typecheck.full_check else "incremental"
        )
        self.logger.info("Check directories: %s", ", ".join(config.check_directories))
        if branches.deploy_mode:
            self.logger.info("CI commit ref: %s", branches.ci_ref or "(unset)")

    def _log_outcome(self, checker: Checker, outcome: CheckOutcome) -> None:
        if outcome.skipped:
            return
        if outcome.success:
            self.logger.info("%s passed: %s", checker.title, outcome.message)
            if outcome.warning_count:
                self.logger.warning("%s reported %d warnings", checker.title, outcome.warning_count)
                if outcome.output:
                    self.logger.warning("%s", outcome.output)
            return
        self.logger.error("%s failed: %s", checker.title, outcome.message)
        if outcome.output:
            self.logger.error("%s", outcome.output)
