from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Optional, Sequence

from .models import BuildContext, default_parallel_jobs
from .project import DEFAULT_PROJECT_FILE, Project


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nobs",
        description="Incremental build orchestrator with a bounded parallel job pool.",
    )
    parser.add_argument(
        "--project-file",
        default=DEFAULT_PROJECT_FILE,
        help="Path to the project TOML file.",
    )
    parser.add_argument(
        "--build-dir",
        default=None,
        help="Build directory (default: [build].directory from the project file).",
    )
    parser.add_argument(
        "-m",
        "--jobs",
        type=int,
        default=None,
        help="Use N parallel jobs (default: host CPU count).",
    )
    parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Remove the build directory and exit.",
    )
    parser.add_argument(
        "--compiler",
        default=None,
        help="Compiler executable (overrides project file and NOBS_COMPILER).",
    )
    parser.add_argument(
        "--linker",
        default=None,
        help="Linker executable (overrides project file and NOBS_LINKER).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds to sleep between polls of running jobs.",
    )
    parser.add_argument(
        "--target",
        action="append",
        default=None,
        help="Build only this target (repeatable). Default: all targets in file order.",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print a compact report of the last build state and exit.",
    )
    parser.add_argument(
        "--no-self-rebuild",
        action="store_true",
        help="Skip the [self_rebuild] step even if the project file declares one.",
    )
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    if args.jobs is not None and args.jobs < 1:
        raise ValueError("--jobs must be at least 1.")
    if args.poll_interval is not None and args.poll_interval < 0:
        raise ValueError("--poll-interval must be >= 0.")


def _setting(args_value: Any, settings: dict[str, Any], key: str) -> Any:
    return args_value if args_value is not None else settings.get(key)


def resolve_parallel_jobs(value: Any) -> int:
    try:
        jobs = int(value or 0)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid number of jobs: {value!r}") from exc
    if jobs < 0:
        raise ValueError(f"Invalid number of jobs: {value!r}")
    return jobs if jobs > 0 else default_parallel_jobs()


def build_context(project: Project, args: argparse.Namespace) -> BuildContext:
    build = project.settings.get("build", {})
    build_dir = Path(str(_setting(args.build_dir, build, "directory")))
    if not build_dir.is_absolute():
        build_dir = project.project_directory / build_dir
    poll_interval = float(_setting(args.poll_interval, build, "poll_interval"))
    if poll_interval < 0:
        raise ValueError("[build].poll_interval must be >= 0.")
    return BuildContext(
        build_directory=build_dir,
        project_directory=project.project_directory,
        parallel_jobs=resolve_parallel_jobs(_setting(args.jobs, build, "jobs")),
        clean_mode=bool(args.clean),
        compiler=str(_setting(args.compiler, build, "compiler")),
        linker=str(_setting(args.linker, build, "linker")),
        poll_interval=poll_interval,
    )
