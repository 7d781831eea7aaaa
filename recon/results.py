from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple


@dataclass
class ItemCheckResult:
    kind: str
    checked: int
    missing: List[int] = field(default_factory=list)
    lookups: int = 0
    missing_tuples: Optional[List[Tuple[int, int, int]]] = None

    @property
    def missing_count(self) -> int:
        if self.missing_tuples is not None:
            return len(self.missing_tuples)
        return len(self.missing)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "checked": self.checked,
            "missing": len(self.missing),
            "lookups": self.lookups,
        }
        if self.missing_tuples is not None:
            data["missing_entries"] = len(self.missing_tuples)
        return data


@dataclass
class CheckRunSummary:
    items: List[ItemCheckResult] = field(default_factory=list)
    error_nodes: Optional[int] = None
    nodes_to_reindex: Optional[int] = None
    indexed_path_nodes: Optional[int] = None
    nodes_to_purge: Optional[int] = None
    elapsed_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": "checked",
            "items": [item.to_dict() for item in self.items],
            "error_nodes": self.error_nodes,
            "nodes_to_reindex": self.nodes_to_reindex,
            "indexed_path_nodes": self.indexed_path_nodes,
            "nodes_to_purge": self.nodes_to_purge,
            "elapsed_seconds": self.elapsed_seconds,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class FixItemSummary:
    kind: str
    action: str
    total: int = 0
    scheduled: int = 0
    failed: int = 0
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "action": self.action,
            "total": self.total,
            "scheduled": self.scheduled,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass
class FixRunSummary:
    items: List[FixItemSummary] = field(default_factory=list)
    instances: int = 1
    elapsed_seconds: float = 0.0

    @property
    def failures(self) -> int:
        return sum(item.failed for item in self.items)

    @classmethod
    def from_items(cls, items: Iterable[FixItemSummary], *, instances: int, elapsed_seconds: float) -> "FixRunSummary":
        return cls(items=list(items), instances=instances, elapsed_seconds=elapsed_seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "completed" if not self.failures else "completed_with_failures",
            "instances": self.instances,
            "failures": self.failures,
            "items": [item.to_dict() for item in self.items],
            "elapsed_seconds": self.elapsed_seconds,
        }


__all__ = ["CheckRunSummary", "FixItemSummary", "FixRunSummary", "ItemCheckResult"]
