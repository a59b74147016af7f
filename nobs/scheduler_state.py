from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Optional

from .models import TargetBuildState

JOB_STATUSES = ("pending", "running", "completed", "failed")


def safe_error_text(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def ts_iso(ts: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(ts))


class EventSink:
    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path

    def emit(self, event_type: str, message: str, **extra: Any) -> None:
        payload = {
            "time": now_iso(),
            "event": event_type,
            "message": message,
            **extra,
        }
        if self.path is not None:
            line = json.dumps(payload, sort_keys=True, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        print(f"[{payload['time']}] {event_type}: {message}", flush=True)


def state_path_for(state_dir: Path, target_name: str) -> Path:
    return state_dir / f"{target_name}.json"


def write_state(*, path: Path, state: TargetBuildState) -> None:
    jobs = state.jobs
    payload: dict[str, Any] = {
        "updated_at": now_iso(),
        "target": state.target.name,
        "target_kind": state.target.kind,
        "needs_linking": state.needs_linking,
        "summary": {
            status: sum(1 for job in jobs if job.runtime.status == status)
            for status in JOB_STATUSES
        },
        "jobs": [],
    }
    for idx, job in enumerate(jobs):
        runtime = job.runtime
        payload["jobs"].append(
            {
                "index": idx,
                "kind": job.spec.kind,
                "status": runtime.status,
                "exit_code": runtime.exit_code,
                "pid": runtime.pid if runtime.status == "running" else None,
                "output_file": str(job.spec.output_file),
                "depends_on": sorted(job.depends_on),
                "started_at": ts_iso(runtime.started_at) if runtime.started_at else None,
                "finished_at": ts_iso(runtime.finished_at) if runtime.finished_at else None,
            }
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
