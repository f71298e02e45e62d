from __future__ import annotations

import json
import time
from datetime import date
from pathlib import Path
from typing import Any


def write_run_telemetry(
    output_dir: str | Path,
    run_date: date,
    tool_name: str,
    payload: dict[str, Any],
) -> Path:
    """Append one JSON line describing a finished run."""
    telemetry_dir = Path(output_dir) / "_telemetry"
    telemetry_dir.mkdir(parents=True, exist_ok=True)
    telemetry_path = (
        telemetry_dir / f"{run_date.strftime('%Y_%m_%d')}_{tool_name}_observability.jsonl"
    )
    row = {"tool": tool_name, **payload, "timestamp": time.time()}
    with telemetry_path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(row, ensure_ascii=False) + "\n")
    return telemetry_path
