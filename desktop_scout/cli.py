"""CLI entry point for auditing desktop launcher entries."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from desktop_scout.discovery import collect_application_dirs, collect_desktop_files
from desktop_scout.models.options import InspectionOptions, search_path_from_env
from desktop_scout.models.result import InspectionBatchResult
from desktop_scout.report import format_output, render_text
from desktop_scout.scheduler import BatchProgress, InspectionScheduler

EXIT_INTERRUPTED = 130


def log_results_summary(log: logging.Logger, batch: InspectionBatchResult) -> None:
    """Log a one-line tally of the batch."""
    log.info(
        "Inspected %d file(s): %d ok, %d broken, %d warning(s), %d skipped",
        len(batch),
        batch.count("ok"),
        batch.count("broken"),
        batch.count("warning"),
        batch.count("skipped"),
    )


def emit_report(
    batch: InspectionBatchResult, *, json_output: bool, include_all: bool
) -> None:
    """Print the report to stdout."""
    if json_output:
        print(json.dumps(format_output(batch, include_all=include_all), indent=2))
    else:
        print(render_text(batch, include_all=include_all))


async def run(
    options: InspectionOptions,
    *,
    extra_dirs: Sequence[Path] = (),
    no_default: bool = False,
    no_common_extras: bool = False,
    json_output: bool = False,
    include_all: bool = False,
) -> int:
    """Discover, inspect and report; return the exit code."""
    log = logging.getLogger("desktop_scout")

    dirs = collect_application_dirs(
        no_default=no_default,
        no_common_extras=no_common_extras,
        extra_dirs=extra_dirs,
    )
    files = await collect_desktop_files(dirs)

    progress = BatchProgress(files)
    scheduler = InspectionScheduler(options=options)
    try:
        batch = await scheduler.inspect_files(files, progress)
    except asyncio.CancelledError:
        log.warning("Inspection interrupted, reporting completed results")
        emit_report(
            progress.completed(), json_output=json_output, include_all=include_all
        )
        raise

    log_results_summary(log, batch)
    emit_report(batch, json_output=json_output, include_all=include_all)

    return 1 if batch.has_problems else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="desktop-scout",
        description="Detect broken/stale .desktop files by validating Exec/TryExec",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print JSON output (machine readable)"
    )
    parser.add_argument(
        "--all",
        dest="include_all",
        action="store_true",
        help="Report ok and skipped entries as well as broken ones",
    )
    parser.add_argument(
        "--no-default",
        action="store_true",
        help="Do not use default scan directories",
    )
    parser.add_argument(
        "--no-common-extras",
        action="store_true",
        help="Do not scan common extra dirs (Flatpak, Snap desktop exports)",
    )
    parser.add_argument(
        "--dir",
        dest="extra_dirs",
        type=Path,
        action="append",
        default=[],
        help="Additional directory to scan (can be passed multiple times)",
    )
    parser.add_argument(
        "--include-hidden",
        action="store_true",
        help="Include entries with Hidden=true or NoDisplay=true",
    )
    parser.add_argument(
        "--check-script-args",
        action="store_true",
        help="Flag interpreter Exec lines (python/node/bash) whose script is missing",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Max concurrent inspections (defaults to CPU count * 4, at least 8)",
    )
    parser.add_argument(
        "--search-path",
        default=None,
        help="Search path for bare commands (defaults to $PATH)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--no-log", action="store_true", help="Suppress all logging output"
    )
    verbosity.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def build_options(args: argparse.Namespace) -> InspectionOptions:
    """Translate parsed arguments into inspection options."""
    overrides: dict[str, object] = {}
    if args.jobs is not None:
        overrides["max_concurrency"] = args.jobs
    if args.search_path is not None:
        overrides["search_path"] = search_path_from_env({"PATH": args.search_path})
    return InspectionOptions(
        include_hidden=args.include_hidden,
        check_script_args=args.check_script_args,
        **overrides,  # type: ignore[arg-type]
    )


def configure_logging(*, no_log: bool, verbose: bool) -> None:
    if no_log:
        logging.disable(logging.CRITICAL)
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    try:
        options = build_options(args)
    except ValidationError as e:
        parser.error(f"invalid options: {e}")

    configure_logging(no_log=args.no_log, verbose=args.verbose)

    try:
        exit_code = asyncio.run(
            run(
                options,
                extra_dirs=args.extra_dirs,
                no_default=args.no_default,
                no_common_extras=args.no_common_extras,
                json_output=args.json,
                include_all=args.include_all,
            )
        )
    except KeyboardInterrupt:
        exit_code = EXIT_INTERRUPTED
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
