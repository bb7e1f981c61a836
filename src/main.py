# src/main.py — v2
"""CLI entry point: run, submit, job and cache commands.

Usage:
    buildcheck run <file>... [options]
    buildcheck submit <file>... [options]
    buildcheck job <job_id>
    buildcheck cache list|clear
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from buildcheck.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="buildcheck",
        description=f"buildcheck v{__version__}: construction project analyzer",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser("run", help="Analyze files and wait for the result")
    _add_run_arguments(p_run)
    p_run.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Directory for result.json and exported files",
    )
    p_run.add_argument(
        "--no-cache", action="store_true",
        help="Ignore and do not update the result cache",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- submit ---
    p_submit = subparsers.add_parser(
        "submit", help="Run as a tracked job, printing progress",
    )
    _add_run_arguments(p_submit)
    p_submit.set_defaults(func=_cmd_submit)

    # --- job ---
    p_job = subparsers.add_parser(
        "job", help="Show a stored job (needs a durable JOB_STORE_URL)",
    )
    p_job.add_argument("job_id", help="Job identifier")
    p_job.set_defaults(func=_cmd_job)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear the result cache")
    p_cache.add_argument("action", choices=["list", "clear"])
    p_cache.set_defaults(func=_cmd_cache)

    return parser


def _add_run_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("files", type=Path, nargs="+", help="Project files")
    parser.add_argument(
        "--depth", choices=["quick", "standard", "deep"], default="standard",
        help="Analysis depth (default: standard)",
    )
    parser.add_argument("--no-costs", action="store_true", help="Skip cost estimation")
    parser.add_argument("--no-schedule", action="store_true", help="Skip scheduling")
    parser.add_argument(
        "--no-compliance", action="store_true", help="Skip compliance checks",
    )
    parser.add_argument(
        "--no-ai-estimate", action="store_true",
        help="Skip the independent AI estimate and review",
    )


def _options_from_args(args: argparse.Namespace):
    from buildcheck.core.models import PipelineOptions

    return PipelineOptions(
        include_costs=not args.no_costs,
        include_schedule=not args.no_schedule,
        include_compliance=not args.no_compliance,
        include_ai_estimate=not args.no_ai_estimate,
        analysis_depth=args.depth,
    )


def _load_files(paths: list[Path]):
    from buildcheck.core.models import InputFile

    missing = [p for p in paths if not p.is_file()]
    if missing:
        for path in missing:
            logger.error("File not found: %s", path)
        return None
    return [InputFile.from_path(p) for p in paths]


def _service():
    from buildcheck.api.context import AppContext
    from buildcheck.api.facade import PipelineService
    from buildcheck.config.settings import Settings

    return PipelineService(AppContext(Settings()))


async def _print_progress(event) -> None:
    print(f"[{event.percent:3d}%] {event.stage}: {event.message}", file=sys.stderr)


async def _cmd_run(args: argparse.Namespace) -> int:
    """Execute a synchronous analysis."""
    files = _load_files(args.files)
    if files is None:
        return 1

    service = _service()
    try:
        result = await service.analyze(
            files,
            _options_from_args(args),
            on_progress=_print_progress,
            use_cache=not args.no_cache,
        )
    finally:
        await service.aclose()

    if args.output is not None:
        _write_output(result, args.output)
    _print_result_summary(result)
    return 0


async def _cmd_submit(args: argparse.Namespace) -> int:
    """Execute an analysis as a job and report its final state."""
    files = _load_files(args.files)
    if files is None:
        return 1

    service = _service()
    try:
        job = await service.submit(files, _options_from_args(args))
        print(f"Submitted {job.id}", file=sys.stderr)
        await service.join()
        final = await service.get_job(job.id)
    finally:
        await service.aclose()

    if final is None:
        logger.error("Job %s disappeared from the store", job.id)
        return 1
    print(f"\nJob {final.id}: {final.status} ({final.progress}%)")
    if final.error:
        print(f"  Error:    {final.error}")
    for warning in final.warnings:
        print(f"  Warning:  {warning}")
    return 0 if final.status == "completed" else 1


async def _cmd_job(args: argparse.Namespace) -> int:
    """Display one job from the configured store."""
    service = _service()
    try:
        job = await service.get_job(args.job_id)
    finally:
        await service.aclose()

    if job is None:
        logger.error("Unknown job: %s", args.job_id)
        return 1
    print(job.model_dump_json(indent=2, exclude={"result"}))
    return 0


async def _cmd_cache(args: argparse.Namespace) -> int:
    """List or clear cached results."""
    from buildcheck.api.context import AppContext
    from buildcheck.config.settings import Settings

    context = AppContext(Settings())
    cache = context.result_cache
    if cache is None:
        print("Result cache is disabled (CACHE_ENABLED=false)")
        return 0
    try:
        if args.action == "clear":
            removed = await cache.clear()
            print(f"Removed {removed} cached results")
        else:
            entries = await cache.entries()
            if not entries:
                print("Cache is empty")
            for entry in entries:
                print(f"{entry.fingerprint[:12]}  {entry.cached_at:%Y-%m-%d %H:%M}  {entry.summary}")
    finally:
        await context.reset()
    return 0


def _write_output(result, output_dir: Path) -> None:
    from buildcheck.pipeline.serializer import serialize_result

    output_dir.mkdir(parents=True, exist_ok=True)
    payload = serialize_result(result, include_source=False)
    (output_dir / "result.json").write_text(
        json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    for export in result.exports.values():
        target = output_dir / export.name
        if isinstance(export.content, bytes):
            target.write_bytes(export.content)
        else:
            target.write_text(export.content, encoding="utf-8")
        logger.info("Wrote %s", target)


def _print_result_summary(result) -> None:
    """Print a human-readable summary of a PipelineResult."""
    print("\nAnalysis complete:")
    for key, value in result.summary().items():
        print(f"  {key + ':':<20}{value}")
    for warning in result.warnings:
        print(f"  Warning: {warning}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage from settings."""
    from buildcheck.config.settings import Settings
    from buildcheck.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
