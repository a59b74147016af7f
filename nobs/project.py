"""Project file loading and target declaration helpers.

A project is described by a ``nobs.toml`` file; relative source paths and the
build directory are resolved against the directory that holds it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .models import Target

DEFAULT_PROJECT_FILE = "nobs.toml"
DEFAULT_BUILD_DIRECTORY = "build_dir"
DEFAULT_SELF_REBUILD_FLAGS = ["--std=c++23"]
TARGET_KINDS = ("executable", "library")


@dataclass
class SelfRebuildSpec:
    source: Path
    compile_flags: list[str] = field(default_factory=list)


@dataclass
class Project:
    project_file: Path
    project_directory: Path
    settings: dict[str, Any]
    targets: list[Target]
    self_rebuild: Optional[SelfRebuildSpec] = None


def default_settings() -> dict[str, Any]:
    return {
        "build": {
            "directory": DEFAULT_BUILD_DIRECTORY,
            "compiler": "g++",
            "linker": "g++",
            "jobs": 0,
            "poll_interval": 0.01,
        },
    }


def load_settings(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        payload = tomllib.load(fh)
    merged = default_settings()
    for key, value in payload.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            section = dict(merged[key])
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value

    build = merged["build"]
    for env_name, key in (("NOBS_COMPILER", "compiler"), ("NOBS_LINKER", "linker")):
        override = os.environ.get(env_name)
        if override:
            build[key] = override
    return merged


def add_target(targets: list[Target], name: str, kind: str = "executable") -> Target:
    if not name:
        raise ValueError("Target name must not be empty.")
    if kind not in TARGET_KINDS:
        raise ValueError(
            f"Target {name}: unknown kind {kind!r} (expected one of {TARGET_KINDS})."
        )
    if any(t.name == name for t in targets):
        raise ValueError(f"Duplicate target name: {name}")
    target = Target(name=name, kind=kind)
    targets.append(target)
    return target


def add_target_sources(target: Target, sources: Iterable[str], project_dir: Path) -> None:
    for source in sources:
        path = Path(source)
        resolved = path if path.is_absolute() else project_dir / path
        if not resolved.exists():
            raise FileNotFoundError(f"Source file {source} does not exist!")
        target.sources.append(path)


def add_target_compile_flags(target: Target, flags: Iterable[str]) -> None:
    target.compile_flags.extend(str(flag) for flag in flags)


def add_target_include_directories(target: Target, include_dirs: Iterable[str]) -> None:
    target.compile_flags.extend(f"-I{directory}" for directory in include_dirs)


def _string_list(entry: dict[str, Any], key: str, owner: str) -> list[str]:
    value = entry.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{owner}: '{key}' must be a list of strings.")
    return value


def load_project(project_file: Path) -> Project:
    project_file = project_file.resolve()
    if not project_file.exists():
        raise FileNotFoundError(f"Project file not found: {project_file}")
    project_dir = project_file.parent
    settings = load_settings(project_file)

    target_entries = settings.get("target", [])
    if not isinstance(target_entries, list):
        raise ValueError(f"Invalid project file format ([[target]] expected): {project_file}")

    targets: list[Target] = []
    for entry in target_entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid target entry in {project_file}: {entry!r}")
        target = add_target(
            targets, str(entry.get("name", "")), str(entry.get("kind", "executable"))
        )
        owner = f"Target {target.name}"
        add_target_sources(target, _string_list(entry, "sources", owner), project_dir)
        # -I flags are placed before compile_flags.
        add_target_include_directories(
            target, _string_list(entry, "include_directories", owner)
        )
        add_target_compile_flags(target, _string_list(entry, "compile_flags", owner))

    self_rebuild = None
    raw_self = settings.get("self_rebuild")
    if isinstance(raw_self, dict) and raw_self.get("source"):
        self_rebuild = SelfRebuildSpec(
            source=Path(str(raw_self["source"])),
            compile_flags=(
                _string_list(raw_self, "compile_flags", "self_rebuild")
                or list(DEFAULT_SELF_REBUILD_FLAGS)
            ),
        )

    return Project(
        project_file=project_file,
        project_directory=project_dir,
        settings=settings,
        targets=targets,
        self_rebuild=self_rebuild,
    )
