from __future__ import annotations

import json
import sys
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

RUN_ID = uuid.uuid4().hex[:12]


class PrintLogger:
    """Structured logger emitting one JSON document per event."""

    _LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

    def __init__(
        self,
        job_name: str = "index_check",
        file_path: Optional[str] = None,
        level: str = "INFO",
        stream: Any = None,
    ) -> None:
        self.job_name = job_name
        self.file_path = file_path
        self.level = level.upper()
        self.stream = stream
        self._lock = threading.Lock()

    def _enabled(self, level: str) -> bool:
        return self._LEVELS.get(level, 20) >= self._LEVELS.get(self.level, 20)

    def log(self, level: str, msg: str, **fields: Any) -> None:
        level = level.upper()
        if level == "WARNING":
            level = "WARN"
        if not self._enabled(level):
            return
        record = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": level,
            "job": self.job_name,
            "run_id": RUN_ID,
            "msg": msg,
        }
        record.update({k: v for k, v in fields.items() if v is not None})
        line = json.dumps(record, default=str)
        with self._lock:
            print(line, file=self.stream or sys.stdout, flush=True)
            if self.file_path:
                with open(self.file_path, "a", encoding="utf-8") as handle:
                    handle.write(line + "\n")

    def debug(self, msg: str, **fields: Any) -> None:
        self.log("DEBUG", msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self.log("INFO", msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self.log("WARN", msg, **fields)

    warning = warn

    def error(self, msg: str, **fields: Any) -> None:
        self.log("ERROR", msg, **fields)


__all__ = ["PrintLogger", "RUN_ID"]
