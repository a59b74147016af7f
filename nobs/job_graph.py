from __future__ import annotations

import os
from pathlib import Path

from . import build_cache
from .errors import FilesystemError
from .models import BuildContext, CompileSpec, Job, LinkSpec, Target, TargetBuildState

OBJECT_FILE_EXTENSION = ".o"


def flatten_flags(flags: list[str]) -> str:
    return " ".join(flags)


def ensure_directory(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Could not create directory {path}: {exc}") from exc
    return path


def build_root(ctx: BuildContext) -> Path:
    root = ctx.build_directory
    if not root.is_absolute():
        root = ctx.project_directory / root
    return root.resolve()


def relative_source_path(source: Path, project_dir: Path) -> Path:
    # Normalised so aliases such as "sub/../main.cpp" map to a single object file.
    if source.is_absolute():
        return Path(os.path.relpath(source, project_dir))
    return Path(os.path.normpath(source))


def object_file_for(source: Path, ctx: BuildContext, use_build_subdir: bool = True) -> Path:
    relative = relative_source_path(source, ctx.project_directory)
    if use_build_subdir:
        base = build_root(ctx) / relative
    else:
        base = (ctx.project_directory / relative).resolve()
    return Path(str(base) + OBJECT_FILE_EXTENSION)


def target_file_for(target: Target, ctx: BuildContext, use_build_subdir: bool = True) -> Path:
    root = build_root(ctx) if use_build_subdir else Path.cwd().resolve()
    return root / target.name


def build_jobs(
    target: Target,
    ctx: BuildContext,
    use_build_subdir: bool = True,
) -> TargetBuildState:
    """Plan compile and link jobs for one target.

    A source gets a compile job only when its record is missing or differs from
    the fresh fingerprint. The link job, when any compile job exists, always
    links the object files of every source and depends on every compile job
    planned here.
    """
    state = TargetBuildState(target=target)
    flags = flatten_flags(target.compile_flags)
    if use_build_subdir:
        ensure_directory(build_root(ctx))

    object_files: list[Path] = []
    seen: dict[Path, Path] = {}
    for source in target.sources:
        object_file = object_file_for(source, ctx, use_build_subdir)
        if object_file in seen:
            raise ValueError(
                f"Target {target.name}: sources {seen[object_file]} and {source} "
                f"map to the same object file {object_file}"
            )
        seen[object_file] = source
        object_files.append(object_file)
        if use_build_subdir:
            ensure_directory(object_file.parent)

        fresh = build_cache.fingerprint(
            relative_source_path(source, ctx.project_directory),
            object_file,
            flags,
            ctx.project_directory,
        )
        if not build_cache.needs_recompile(fresh):
            continue
        state.jobs.append(Job(spec=CompileSpec.from_record(fresh)))
        # TODO: dependent targets (executables linking this one) should be marked for relink too.
        state.needs_linking = True

    if state.needs_linking:
        compile_indices = {idx for idx, job in enumerate(state.jobs) if job.spec.kind == "compile"}
        state.jobs.append(
            Job(
                spec=LinkSpec(
                    object_files=object_files,
                    target_file=target_file_for(target, ctx, use_build_subdir),
                ),
                depends_on=compile_indices,
            )
        )
    return state


def clean_target_artifacts(target: Target, ctx: BuildContext, use_build_subdir: bool = True) -> list[Path]:
    removed: list[Path] = []
    for source in target.sources:
        object_file = object_file_for(source, ctx, use_build_subdir)
        try:
            object_file.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            raise FilesystemError(f"Could not remove {object_file}: {exc}") from exc
        removed.append(object_file)
    return removed
