"""CLI entrypoints for qualitygate commands."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import RunOrchestrator
from .report import SummaryRenderer


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Path to the project root (defaults to $PROJECT_DIR or the current directory).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .qualitygate.yml file (defaults to the one in the project root).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qualitygate",
        description="Run lint, type-check and type-coverage gates against changed files.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write timestamped logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run every enabled checker and exit non-zero if any reports errors.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_project_options(run_parser)

    changes_parser = subparsers.add_parser(
        "changes",
        help="Print the files incremental checks would consider changed.",
    )
    _add_verbose_option(changes_parser, suppress_default=True)
    _add_project_options(changes_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for qualitygate commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    project = Path(args.path or os.environ.get("PROJECT_DIR") or ".").expanduser().resolve()
    if not project.is_dir():
        parser.exit(1, f"Project directory not found: {project}\n")

    try:
        config = load_config(args.config or project)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    config.root = project

    orchestrator = RunOrchestrator()

    if args.command == "run":
        try:
            report = orchestrator.run(config)
        except Exception as exc:
            parser.exit(1, f"qualitygate run failed: {exc}\nRun with --verbose for more details.\n")
        print(SummaryRenderer().render(report), end="")
        if not report.overall_success:
            parser.exit(report.exit_code)
    elif args.command == "changes":
        try:
            change_set = orchestrator.resolve_changes(config)
        except RuntimeError as exc:
            parser.exit(1, f"qualitygate changes failed: {exc}\n")
        for note in change_set.diagnostics:
            print(f"# {note}", file=sys.stderr)
        if not change_set.paths:
            print("No changed files")
        for path in change_set.paths:
            print(path)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
