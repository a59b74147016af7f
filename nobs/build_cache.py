"""Per-object-file compile records used to decide what needs recompiling.

A record lives next to its object file as ``<object_file>.meta`` and holds four
lines: source path, object path, flattened compile flags, source mtime.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .errors import FilesystemError, MetadataCorruption
from .models import CompileRecord

METAFILE_EXTENSION = ".meta"
RECORD_FIELDS = ("source file", "object file", "compile flags", "timestamp")


def meta_file_for(object_file: Path) -> Path:
    return Path(str(object_file) + METAFILE_EXTENSION)


def source_timestamp(source: Path, project_dir: Optional[Path] = None) -> int:
    path = source if source.is_absolute() or project_dir is None else project_dir / source
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return 0


def fingerprint(
    source_file: Path,
    object_file: Path,
    compile_flags: str,
    project_dir: Optional[Path] = None,
) -> CompileRecord:
    return CompileRecord(
        source_file=source_file,
        object_file=object_file,
        compile_flags=compile_flags,
        source_timestamp=source_timestamp(source_file, project_dir),
    )


def load(object_file: Path) -> Optional[CompileRecord]:
    meta_file = meta_file_for(object_file)
    if not meta_file.exists():
        return None
    try:
        lines = meta_file.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise MetadataCorruption(f"Error opening metafile {meta_file}: {exc}") from exc

    if len(lines) < len(RECORD_FIELDS):
        missing = RECORD_FIELDS[len(lines)]
        raise MetadataCorruption(f"Could not read {missing} from metafile {meta_file}")

    raw_timestamp = lines[3].strip()
    if not (raw_timestamp.isascii() and raw_timestamp.isdigit()):
        raise MetadataCorruption(
            f"Invalid timestamp {raw_timestamp!r} in metafile {meta_file}"
        )
    return CompileRecord(
        source_file=Path(lines[0]),
        object_file=Path(lines[1]),
        compile_flags=lines[2],
        source_timestamp=int(raw_timestamp),
    )


def store(record: CompileRecord) -> Path:
    meta_file = meta_file_for(record.object_file)
    payload = "\n".join(
        [
            str(record.source_file),
            str(record.object_file),
            record.compile_flags,
            str(record.source_timestamp),
        ]
    )
    try:
        meta_file.write_text(payload + "\n", encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"Error writing metafile {meta_file}: {exc}") from exc
    return meta_file


def needs_recompile(fresh: CompileRecord) -> bool:
    # Coarse check: any change in paths, joined flags or mtime forces a rebuild.
    previous = load(fresh.object_file)
    return previous is None or previous != fresh
