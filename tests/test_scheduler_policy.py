from __future__ import annotations

import pathlib
import unittest

from nobs.models import CompileSpec, Job, LinkSpec
from nobs.scheduler_policy import (
    all_done,
    job_ready,
    mark_job_finished,
    mark_job_running,
    next_ready_job,
)


def make_jobs() -> list[Job]:
    compiles = [
        Job(
            spec=CompileSpec(
                source_file=pathlib.Path(f"s{i}.cpp"),
                object_file=pathlib.Path(f"/b/s{i}.cpp.o"),
                compile_flags="",
                source_timestamp=i,
            )
        )
        for i in range(2)
    ]
    link = Job(
        spec=LinkSpec(
            object_files=[pathlib.Path("/b/s0.cpp.o"), pathlib.Path("/b/s1.cpp.o")],
            target_file=pathlib.Path("/b/app"),
        ),
        depends_on={0, 1},
    )
    return [*compiles, link]


class SchedulerPolicyTests(unittest.TestCase):
    def test_link_is_ready_only_after_all_dependencies_completed(self) -> None:
        jobs = make_jobs()
        self.assertEqual(next_ready_job(jobs), 0)
        self.assertFalse(job_ready(jobs[2], jobs))

        mark_job_running(jobs[0], pid=10)
        mark_job_finished(jobs[0], 0)
        mark_job_running(jobs[1], pid=11)
        self.assertIsNone(next_ready_job(jobs))

        mark_job_finished(jobs[1], 0)
        self.assertEqual(next_ready_job(jobs), 2)
        self.assertFalse(all_done(jobs))

    def test_failed_dependency_never_unblocks_link(self) -> None:
        jobs = make_jobs()
        for job in jobs[:2]:
            mark_job_running(job, pid=None)
        mark_job_finished(jobs[0], 0)
        mark_job_finished(jobs[1], 2)
        self.assertEqual(jobs[1].runtime.status, "failed")
        self.assertFalse(job_ready(jobs[2], jobs))

    def test_status_never_moves_backwards(self) -> None:
        job = make_jobs()[0]
        with self.assertRaises(RuntimeError):
            mark_job_finished(job, 0)
        mark_job_running(job, pid=1)
        mark_job_finished(job, 0)
        with self.assertRaises(RuntimeError):
            mark_job_running(job, pid=2)


if __name__ == "__main__":
    unittest.main()
