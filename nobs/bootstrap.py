from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Sequence

from .errors import LaunchFailure
from .job_graph import build_jobs, clean_target_artifacts, target_file_for
from .launcher import ProcessLauncher
from .models import BuildContext, Target
from .scheduler_engine import run_build
from .scheduler_state import EventSink


def rebuild_self(
    *,
    source: Path,
    ctx: BuildContext,
    compile_flags: Sequence[str],
    argv: Sequence[str],
    launcher: ProcessLauncher,
    events: EventSink,
    exec_fn: Callable[[str, list[str]], object] = os.execv,
) -> bool:
    """Rebuild the compiled build driver beside its source and restart into it.

    Returns False when the driver is up to date. When it was rebuilt, the
    current process is replaced and this function does not return unless
    ``exec_fn`` does.
    """
    target = Target(name=source.stem, sources=[source], compile_flags=list(compile_flags))
    state = build_jobs(target, ctx, use_build_subdir=False)
    if not state.needs_linking:
        events.emit(
            "bootstrap_unchanged",
            f"Build driver {source} has not changed. No need to rebuild.",
            source=str(source),
        )
        return False

    run_build(state=state, ctx=ctx, launcher=launcher, events=events)
    clean_target_artifacts(target, ctx, use_build_subdir=False)
    binary = str(target_file_for(target, ctx, use_build_subdir=False))
    events.emit(
        "bootstrap_restart",
        f"Restarting with new binary: {binary}",
        binary=binary,
    )
    try:
        exec_fn(binary, [binary, *argv])
    except OSError as exc:
        raise LaunchFailure(f"Could not restart {binary}: {exc}") from exc
    return True
