from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from .errors import LaunchFailure
from .models import BuildContext, CompileSpec, JobSpec, LinkSpec

COMPILE_FLAG = "-c"
OUTPUT_FLAG = "-o"


def compile_command(spec: CompileSpec, compiler: str) -> list[str]:
    # Naive whitespace split: a flag value containing spaces is split too.
    return [
        compiler,
        *spec.compile_flags.split(),
        COMPILE_FLAG,
        OUTPUT_FLAG,
        str(spec.object_file),
        str(spec.source_file),
    ]


def link_command(spec: LinkSpec, linker: str) -> list[str]:
    return [
        linker,
        *spec.link_flags.split(),
        OUTPUT_FLAG,
        str(spec.target_file),
        *(str(obj) for obj in spec.object_files),
    ]


def command_for(spec: JobSpec, ctx: BuildContext) -> list[str]:
    if spec.kind == "compile":
        return compile_command(spec, ctx.compiler)
    return link_command(spec, ctx.linker)


def normalize_returncode(returncode: int) -> int:
    # Popen reports death by signal N as -N; shells report 128 + N.
    if returncode < 0:
        return 128 - returncode
    return returncode


class ProcessLauncher:
    """Starts job processes and observes them without blocking.

    Children inherit stdout/stderr from the orchestrator.
    """

    def spawn(self, argv: list[str], *, cwd: Optional[Path] = None) -> subprocess.Popen[bytes]:
        try:
            return subprocess.Popen(argv, cwd=cwd)
        except OSError as exc:
            raise LaunchFailure(f"Could not start {argv[0]}: {exc}") from exc

    def poll(self, proc: subprocess.Popen[bytes]) -> Optional[int]:
        returncode = proc.poll()
        if returncode is None:
            return None
        return normalize_returncode(returncode)

    def wait(self, proc: subprocess.Popen[bytes]) -> int:
        return normalize_returncode(proc.wait())

    def terminate(self, proc: subprocess.Popen[bytes], timeout_seconds: float = 5.0) -> None:
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait(timeout=timeout_seconds)
