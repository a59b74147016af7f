from __future__ import annotations

import json
from pathlib import Path
from typing import Optional


def compact_text(value: Optional[str], max_chars: int = 220) -> str:
    if not value:
        return ""
    collapsed = " ".join(value.split())
    if len(collapsed) <= max_chars:
        return collapsed
    return collapsed[: max_chars - 3] + "..."


def render_state_report(state_dir: Path) -> str:
    state_files = sorted(state_dir.glob("*.json")) if state_dir.is_dir() else []
    if not state_files:
        return f"no build state found in {state_dir}"

    lines: list[str] = [f"state: {state_dir}"]
    failed_rows: list[str] = []
    for state_file in state_files:
        payload = json.loads(state_file.read_text(encoding="utf-8"))
        target = str(payload.get("target", state_file.stem))
        summary = payload.get("summary", {})
        if not isinstance(summary, dict):
            summary = {}
        lines.append(
            f"{target}: "
            f"pending={summary.get('pending', 0)} "
            f"running={summary.get('running', 0)} "
            f"completed={summary.get('completed', 0)} "
            f"failed={summary.get('failed', 0)} "
            f"(updated_at={payload.get('updated_at', 'unknown')})"
        )
        jobs = payload.get("jobs", [])
        if not isinstance(jobs, list):
            continue
        for item in jobs:
            if not isinstance(item, dict) or item.get("status") != "failed":
                continue
            output = compact_text(str(item.get("output_file", "")))
            failed_rows.append(
                f"- {target} #{item.get('index')} {item.get('kind')} "
                f"(exit_code={item.get('exit_code')}): {output}"
            )

    lines.append("")
    lines.append("failed jobs:")
    if failed_rows:
        lines.extend(failed_rows)
    else:
        lines.append("- none")
    return "\n".join(lines)
