#!/usr/bin/env python3
"""Incremental build orchestrator.

Reads targets from a project file, recompiles only the sources whose compile
record (flags + modification time) changed, and links each target once its
compile jobs have completed.

Key behavior:
- Per-object `.meta` records decide what needs recompiling
- Compile jobs run in parallel, bounded by --jobs
- The link job starts only after every compile job of its target completed
- The first failing job stops the build with that job's exit code

Typical invocation:
  nobs --project-file nobs.toml --jobs 8
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Optional, Sequence

from .bootstrap import rebuild_self
from .errors import EXIT_INTERRUPTED, EXIT_STARTUP_ERROR, BuildError, FilesystemError
from .job_graph import build_jobs, build_root, ensure_directory
from .launcher import ProcessLauncher
from .models import BuildContext, Target
from .project import Project, load_project
from .scheduler_args import build_context, parse_args, validate_args
from .scheduler_engine import run_build
from .scheduler_report import render_state_report
from .scheduler_state import EventSink, safe_error_text, state_path_for


def select_targets(project: Project, names: Optional[list[str]]) -> list[Target]:
    if not names:
        return list(project.targets)
    by_name = {t.name: t for t in project.targets}
    missing = [name for name in names if name not in by_name]
    if missing:
        raise ValueError(f"Unknown targets: {', '.join(missing)}")
    return [by_name[name] for name in names]


def clean_build_directory(ctx: BuildContext, events: EventSink) -> None:
    root = build_root(ctx)
    if root.exists():
        try:
            shutil.rmtree(root)
        except OSError as exc:
            raise FilesystemError(f"Could not remove build directory {root}: {exc}") from exc
    events.emit("clean", f"Removed build directory {root}.", build_directory=str(root))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        validate_args(args)
        project = load_project(Path(args.project_file))
        ctx = build_context(project, args)
        targets = select_targets(project, args.target)
    except (ValueError, FileNotFoundError, OSError) as exc:
        print(f"startup error: {safe_error_text(exc)}", file=sys.stderr)
        return EXIT_STARTUP_ERROR

    state_dir = build_root(ctx) / ".nobs" / "state"
    if args.report:
        try:
            print(render_state_report(state_dir))
        except (ValueError, OSError) as exc:
            print(f"report error: {safe_error_text(exc)}", file=sys.stderr)
            return EXIT_STARTUP_ERROR
        return 0 if state_dir.is_dir() else 1

    try:
        if ctx.clean_mode:
            clean_build_directory(ctx, EventSink())
            return 0
        runtime_dir = ensure_directory(build_root(ctx) / ".nobs")
    except BuildError as exc:
        print(f"{exc.kind}: {exc}", file=sys.stderr)
        return exc.exit_code

    events = EventSink(runtime_dir / "events.jsonl")
    launcher = ProcessLauncher()
    try:
        if project.self_rebuild is not None and not args.no_self_rebuild:
            rebuild_self(
                source=project.self_rebuild.source,
                ctx=ctx,
                compile_flags=project.self_rebuild.compile_flags,
                argv=list(argv) if argv is not None else sys.argv[1:],
                launcher=launcher,
                events=events,
            )

        events.emit(
            "start",
            (
                f"Build started with {len(targets)} targets, "
                f"parallel_jobs={ctx.parallel_jobs}."
            ),
            project_file=str(project.project_file),
            build_directory=str(build_root(ctx)),
        )
        for target in targets:
            state = build_jobs(target, ctx)
            run_build(
                state=state,
                ctx=ctx,
                launcher=launcher,
                events=events,
                state_path=state_path_for(state_dir, target.name),
            )
    except BuildError as exc:
        events.emit(
            "build_failed",
            f"{exc.kind}: {exc}",
            kind=exc.kind,
            exit_code=exc.exit_code,
        )
        return exc.exit_code
    except ValueError as exc:
        print(f"startup error: {safe_error_text(exc)}", file=sys.stderr)
        return EXIT_STARTUP_ERROR
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    events.emit("finish", f"Build finished: {len(targets)} targets up to date.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
