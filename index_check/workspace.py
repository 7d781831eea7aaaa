from __future__ import annotations

import os
import threading
from typing import Iterable, List, Optional, Sequence, Tuple

NODES = "nodes"
ACLS = "acls"
ACL_UNIQUE = "aclunique"
TXNS = "txns"
ACL_TXIDS = "acltxids"
ERROR_NODES = "missing-error-nodes"
INDEXED_NODES = "indexed-nodes"
PURGE_NODES = "purge-nodes"
ERROR_LOG = "error.log"


def missing_name(kind: str) -> str:
    return f"missing-{kind}"


class FailureLog:
    """Append-only log of corrective request failures, safe for concurrent writers."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def append(self, header: str, body: str) -> None:
        entry = f"{header}\n{body.rstrip()}\n" if body else f"{header}\n"
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as handle:
                handle.write(entry)


class Workspace:
    """Per-run working files under the configured base directory."""

    def __init__(self, base_dir: str) -> None:
        self.base_dir = base_dir
        self.failure_log = FailureLog(self.path(ERROR_LOG))

    def prepare(self) -> "Workspace":
        os.makedirs(self.base_dir, exist_ok=True)
        return self

    def path(self, name: str) -> str:
        return os.path.join(self.base_dir, name)

    def exists(self, name: str) -> bool:
        return os.path.isfile(self.path(name))

    def remove(self, name: str) -> None:
        if self.exists(name):
            os.remove(self.path(name))

    def write_ids(self, name: str, ids: Iterable[int]) -> None:
        with open(self.path(name), "w", encoding="utf-8") as handle:
            for value in ids:
                handle.write(f"{value}\n")

    def read_ids(self, name: str) -> Optional[List[int]]:
        if not self.exists(name):
            return None
        with open(self.path(name), "r", encoding="utf-8") as handle:
            return [int(line) for line in (raw.strip() for raw in handle) if line]

    def write_tuples(self, name: str, rows: Iterable[Sequence[int]]) -> None:
        with open(self.path(name), "w", encoding="utf-8") as handle:
            for row in rows:
                handle.write(",".join(str(value) for value in row) + "\n")

    def read_tuples(self, name: str) -> Optional[List[Tuple[int, ...]]]:
        if not self.exists(name):
            return None
        rows: List[Tuple[int, ...]] = []
        with open(self.path(name), "r", encoding="utf-8") as handle:
            for raw in handle:
                line = raw.strip()
                if line:
                    rows.append(tuple(int(part) for part in line.split(",")))
        return rows


__all__ = [
    "ACLS",
    "ACL_TXIDS",
    "ACL_UNIQUE",
    "ERROR_LOG",
    "ERROR_NODES",
    "FailureLog",
    "INDEXED_NODES",
    "NODES",
    "PURGE_NODES",
    "TXNS",
    "Workspace",
    "missing_name",
]
