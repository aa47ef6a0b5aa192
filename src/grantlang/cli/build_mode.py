from __future__ import annotations

from pathlib import Path

from grantlang.cli.common import GlobalOptions, emit_json, reject_unknown_flags
from grantlang.config.loader import load_config
from grantlang.errors.base import GrantlangError
from grantlang.errors.guidance import build_guidance_message
from grantlang.errors.render import format_error
from grantlang.pipeline.build import BuildReport, pipeline_from_config
from grantlang.pipeline.scan import scan_path


def run_build_command(args: list[str], options: GlobalOptions) -> int:
    if args and args[0] in {"help", "-h", "--help"}:
        _print_usage()
        return 0
    reject_unknown_flags(args, command="build", allowed={"--incremental", "--json"})
    json_mode = "--json" in args
    incremental = "--incremental" in args
    positional = [arg for arg in args if not arg.startswith("--")]
    if len(positional) > 1:
        raise GrantlangError(_too_many_args_message())

    root = options.project
    config = load_config(root)
    base = Path(root) if root else Path.cwd()
    source_root = base / positional[0] if positional else base
    if not source_root.exists():
        raise GrantlangError(f"Source path {source_root.as_posix()} does not exist")

    scan = scan_path(source_root)
    pipeline = pipeline_from_config(config, root=root, prune=False if incremental else None)
    report = pipeline.run(scan.units, scan_errors=scan.errors)

    if json_mode:
        emit_json(report.as_dict())
    else:
        _print_report(report, {outcome.function_id: outcome.source for outcome in report.outcomes})
    return 0 if report.ok else 1


def _print_report(report: BuildReport, sources: dict[str, str]) -> None:
    built = len(report.outcomes) - len(report.failed)
    print(f"Built {built} of {len(report.outcomes)} policy declaration(s).")
    for message in report.diagnostics:
        print(f"  warning: {message}")
    for outcome in report.outcomes:
        for warning in outcome.warnings:
            print(f"  warning: {outcome.function_id}: {warning}")
    if report.persisted:
        print(f"  updated: {', '.join(report.persisted)}")
    if report.removed:
        print(f"  removed: {', '.join(report.removed)}")
    for err in report.scan_errors:
        print(f"  error: {format_error(err)}")
    for outcome in report.failed:
        for err in outcome.errors:
            print(f"  error: {format_error(err, sources.get(outcome.function_id))}")


def _print_usage() -> None:
    print(
        "Usage:\n"
        "  grantlang build [SRC] [--project DIR] [--incremental] [--json]\n"
        "\n"
        "Scans SRC (default: the project directory; relative paths start there) for\n"
        "@policy declarations and writes one record per function to the registry\n"
        "directory.\n"
        "--incremental keeps records of functions that were not seen."
    )


def _too_many_args_message() -> str:
    return build_guidance_message(
        what="build has too many positional arguments.",
        why="Only one optional source path is supported.",
        fix="Remove extra positional values.",
        example="grantlang build src/service",
    )


__all__ = ["run_build_command"]
