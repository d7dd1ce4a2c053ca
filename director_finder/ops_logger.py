from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


class OpsLogger:
    """Append-only JSONL logger for crawl operations (per-page records and run summary).

    - One JSON object per line (UTF-8)
    - Thread-safe: crawl workers emit concurrently
    - Best-effort: logging failures never reach the crawl
    """

    def __init__(self, file_path: Path, also_stdout: bool = False) -> None:
        self.file_path = Path(file_path)
        self.also_stdout = bool(also_stdout)
        self._lock = threading.Lock()
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: Dict[str, Any]) -> None:
        rec = dict(record)
        rec.setdefault("ts", datetime.now(timezone.utc).isoformat())
        line = json.dumps(rec, ensure_ascii=False, default=str)
        try:
            with self._lock:
                with self.file_path.open("a", encoding="utf-8") as f:
                    f.write(line)
                    f.write("\n")
        except OSError:
            # Never propagate logging errors
            pass
        if self.also_stdout:
            print(line)
