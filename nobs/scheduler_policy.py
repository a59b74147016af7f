from __future__ import annotations

import time
from typing import Optional

from .models import Job

TERMINAL_STATUSES = {"completed", "failed"}


def job_ready(job: Job, jobs: list[Job]) -> bool:
    if job.runtime.status != "pending":
        return False
    return all(jobs[dep].runtime.status == "completed" for dep in job.depends_on)


def next_ready_job(jobs: list[Job]) -> Optional[int]:
    """Index of the earliest-created pending job whose dependencies completed."""
    return next((idx for idx, job in enumerate(jobs) if job_ready(job, jobs)), None)


def all_done(jobs: list[Job]) -> bool:
    return all(job.runtime.status in TERMINAL_STATUSES for job in jobs)


def count_status(jobs: list[Job], status: str) -> int:
    return sum(1 for job in jobs if job.runtime.status == status)


def progress_percent(completed: int, in_flight: int, total: int) -> int:
    return (completed + in_flight + 1) * 100 // total


def mark_job_running(job: Job, pid: Optional[int]) -> None:
    runtime = job.runtime
    if runtime.status != "pending":
        raise RuntimeError(f"cannot start job in status {runtime.status!r}")
    runtime.status = "running"
    runtime.pid = pid
    runtime.started_at = time.time()


def mark_job_finished(job: Job, exit_code: int) -> None:
    runtime = job.runtime
    if runtime.status != "running":
        raise RuntimeError(f"cannot finish job in status {runtime.status!r}")
    runtime.exit_code = exit_code
    runtime.status = "completed" if exit_code == 0 else "failed"
    runtime.finished_at = time.time()
