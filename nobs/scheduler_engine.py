from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Optional

from . import build_cache
from .errors import EXIT_INTERRUPTED, JobFailure
from .launcher import ProcessLauncher, command_for
from .models import BuildContext, Job, TargetBuildState
from .scheduler_policy import (
    all_done,
    count_status,
    mark_job_finished,
    mark_job_running,
    next_ready_job,
    progress_percent,
)
from .scheduler_state import EventSink, write_state

JOB_VERBS = {"compile": "Compiling", "link": "Linking"}


def _snapshot(state: TargetBuildState, state_path: Optional[Path]) -> None:
    if state_path is not None:
        write_state(path=state_path, state=state)


def _handle_finished_job(
    *,
    state: TargetBuildState,
    idx: int,
    exit_code: int,
    events: EventSink,
    state_path: Optional[Path],
) -> None:
    job = state.jobs[idx]
    target_name = state.target.name
    mark_job_finished(job, exit_code)

    if exit_code != 0:
        _snapshot(state, state_path)
        events.emit(
            "job_failed",
            f"Error: Command failed with code {exit_code}. Stopping build.",
            target=target_name,
            job_index=idx,
            kind=job.spec.kind,
            exit_code=exit_code,
            output_file=str(job.spec.output_file),
        )
        raise JobFailure(
            f"{JOB_VERBS[job.spec.kind]} {job.spec.output_file} failed with code {exit_code}",
            exit_code=exit_code,
            job_index=idx,
        )

    if job.spec.kind == "compile":
        build_cache.store(job.spec.to_record())
        events.emit(
            "job_completed",
            f"Compiled {job.spec.source_file}.",
            target=target_name,
            job_index=idx,
            object_file=str(job.spec.object_file),
        )
    else:
        events.emit(
            "link_completed",
            "Linking completed successfully.",
            target=target_name,
            job_index=idx,
            target_file=str(job.spec.target_file),
        )
    _snapshot(state, state_path)


def _start_job(
    *,
    state: TargetBuildState,
    idx: int,
    ctx: BuildContext,
    launcher: ProcessLauncher,
    events: EventSink,
    running: dict[int, Any],
) -> None:
    jobs = state.jobs
    job: Job = jobs[idx]
    argv = command_for(job.spec, ctx)
    completed = count_status(jobs, "completed")
    percent = progress_percent(completed, len(running), len(jobs))
    ordinal = completed + len(running) + 1
    events.emit(
        "job_started",
        f"[{percent:3}%] {ordinal}/{len(jobs)} {JOB_VERBS[job.spec.kind]} {' '.join(argv)}",
        target=state.target.name,
        job_index=idx,
        kind=job.spec.kind,
        percent=percent,
    )
    proc = launcher.spawn(argv, cwd=ctx.project_directory)
    mark_job_running(job, getattr(proc, "pid", None))
    running[idx] = proc


def run_build(
    *,
    state: TargetBuildState,
    ctx: BuildContext,
    launcher: ProcessLauncher,
    events: EventSink,
    state_path: Optional[Path] = None,
) -> int:
    """Drain one target's job list with at most ``ctx.parallel_jobs`` processes.

    Jobs start in creation order once every dependency has completed. The first
    non-zero exit raises JobFailure; processes still running at that point are
    left alone.
    """
    jobs = state.jobs
    target_name = state.target.name
    if not jobs:
        events.emit(
            "nothing_to_build",
            f"Nothing to build for target {target_name}.",
            target=target_name,
        )
        return 0

    events.emit(
        "target_start",
        (
            f"Running build of {target_name} with {len(jobs)} jobs "
            f"(max {ctx.parallel_jobs} parallel)..."
        ),
        target=target_name,
        target_kind=state.target.kind,
        jobs=len(jobs),
        parallel_jobs=ctx.parallel_jobs,
    )
    _snapshot(state, state_path)

    running: dict[int, Any] = {}
    try:
        while True:
            for idx, proc in list(running.items()):
                exit_code = launcher.poll(proc)
                if exit_code is None:
                    continue
                running.pop(idx)
                _handle_finished_job(
                    state=state,
                    idx=idx,
                    exit_code=exit_code,
                    events=events,
                    state_path=state_path,
                )

            if all_done(jobs):
                break

            while len(running) < ctx.parallel_jobs:
                idx = next_ready_job(jobs)
                if idx is None:
                    break
                _start_job(
                    state=state,
                    idx=idx,
                    ctx=ctx,
                    launcher=launcher,
                    events=events,
                    running=running,
                )
                _snapshot(state, state_path)

            if not running:
                # Nothing in flight and nothing eligible: the graph cannot make progress.
                raise ValueError(
                    f"Job graph for target {target_name} has unsatisfiable dependencies."
                )
            time.sleep(ctx.poll_interval)
    except KeyboardInterrupt:
        events.emit(
            "interrupt",
            "KeyboardInterrupt received. Terminating running jobs.",
            target=target_name,
        )
        for idx, proc in list(running.items()):
            launcher.terminate(proc)
            mark_job_finished(jobs[idx], EXIT_INTERRUPTED)
            running.pop(idx, None)
        _snapshot(state, state_path)
        raise

    events.emit(
        "target_finished",
        f"Target {target_name} built: {count_status(jobs, 'completed')} jobs completed.",
        target=target_name,
    )
    return 0
