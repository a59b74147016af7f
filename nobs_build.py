#!/usr/bin/env python3
"""Compatibility entrypoint for the nobs build orchestrator."""

from __future__ import annotations

import sys

from nobs import build_cache
from nobs.cli import main
from nobs.job_graph import build_jobs, flatten_flags, object_file_for, target_file_for
from nobs.launcher import ProcessLauncher, compile_command, link_command
from nobs.models import (
    BuildContext,
    CompileRecord,
    CompileSpec,
    Job,
    JobRuntime,
    LinkSpec,
    Target,
    TargetBuildState,
)
from nobs.project import load_project
from nobs.scheduler_args import parse_args, validate_args
from nobs.scheduler_engine import run_build

fingerprint = build_cache.fingerprint
load_record = build_cache.load
store_record = build_cache.store
needs_recompile = build_cache.needs_recompile


__all__ = [
    "BuildContext",
    "CompileRecord",
    "CompileSpec",
    "Job",
    "JobRuntime",
    "LinkSpec",
    "ProcessLauncher",
    "Target",
    "TargetBuildState",
    "build_jobs",
    "compile_command",
    "fingerprint",
    "flatten_flags",
    "link_command",
    "load_project",
    "load_record",
    "main",
    "needs_recompile",
    "object_file_for",
    "parse_args",
    "run_build",
    "store_record",
    "target_file_for",
    "validate_args",
]


if __name__ == "__main__":
    sys.exit(main())
