from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Union


@dataclass
class Target:
    name: str
    sources: list[Path] = field(default_factory=list)
    compile_flags: list[str] = field(default_factory=list)
    kind: str = "executable"  # executable|library


@dataclass(frozen=True)
class CompileRecord:
    source_file: Path
    object_file: Path
    compile_flags: str
    source_timestamp: int


@dataclass(frozen=True)
class CompileSpec:
    source_file: Path
    object_file: Path
    compile_flags: str
    source_timestamp: int
    kind: Literal["compile"] = "compile"

    @classmethod
    def from_record(cls, record: CompileRecord) -> CompileSpec:
        return cls(
            source_file=record.source_file,
            object_file=record.object_file,
            compile_flags=record.compile_flags,
            source_timestamp=record.source_timestamp,
        )

    def to_record(self) -> CompileRecord:
        return CompileRecord(
            source_file=self.source_file,
            object_file=self.object_file,
            compile_flags=self.compile_flags,
            source_timestamp=self.source_timestamp,
        )

    @property
    def output_file(self) -> Path:
        return self.object_file


@dataclass(frozen=True)
class LinkSpec:
    object_files: list[Path]
    target_file: Path
    link_flags: str = ""
    kind: Literal["link"] = "link"

    @property
    def output_file(self) -> Path:
        return self.target_file


JobSpec = Union[CompileSpec, LinkSpec]


@dataclass
class JobRuntime:
    status: str = "pending"  # pending|running|completed|failed
    exit_code: Optional[int] = None
    pid: Optional[int] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None


@dataclass
class Job:
    spec: JobSpec
    depends_on: set[int] = field(default_factory=set)
    runtime: JobRuntime = field(default_factory=JobRuntime)


@dataclass
class TargetBuildState:
    target: Target
    jobs: list[Job] = field(default_factory=list)
    needs_linking: bool = False

    @property
    def compile_jobs(self) -> list[Job]:
        return [job for job in self.jobs if job.spec.kind == "compile"]

    @property
    def link_job(self) -> Optional[Job]:
        return next((job for job in self.jobs if job.spec.kind == "link"), None)


def default_parallel_jobs() -> int:
    return os.cpu_count() or 1


@dataclass
class BuildContext:
    build_directory: Path
    project_directory: Path
    parallel_jobs: int = field(default_factory=default_parallel_jobs)
    clean_mode: bool = False
    compiler: str = "g++"
    linker: str = "g++"
    poll_interval: float = 0.01
