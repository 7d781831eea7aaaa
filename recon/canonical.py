from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from index_check.common import PrintLogger
from index_check.dataset import FORMAT_HINT, SourceRecord
from index_check.errors import InputFormatError
from index_check.events import Emitter, emit_log
from index_check.workspace import ACL_TXIDS, ACL_UNIQUE, ACLS, NODES, TXNS, Workspace

from .sets import sorted_unique

AclTuple = Tuple[int, int, int]


@dataclass
class CanonicalSets:
    """Deduplicated, ascending identifier sets derived from one dataset."""

    nodes: List[int] = field(default_factory=list)
    acls: List[int] = field(default_factory=list)
    txns: List[int] = field(default_factory=list)
    acltxids: List[int] = field(default_factory=list)
    acl_tuples: List[AclTuple] = field(default_factory=list)

    def for_kind(self, kind: str) -> List[int]:
        return {"nodes": self.nodes, "acls": self.acls, "txns": self.txns, "acltxids": self.acltxids}[kind]

    def stats(self) -> Dict[str, Optional[int]]:
        return {
            "nodes": len(self.nodes),
            "acls": len(self.acls),
            "transactions": len(self.txns),
            "changesets": len(self.acltxids),
            "last_node_id": self.nodes[-1] if self.nodes else None,
        }

    def write(self, workspace: Workspace) -> None:
        workspace.write_ids(NODES, self.nodes)
        workspace.write_ids(ACL_UNIQUE, self.acls)
        workspace.write_tuples(ACLS, self.acl_tuples)
        workspace.write_ids(TXNS, self.txns)
        workspace.write_ids(ACL_TXIDS, self.acltxids)


def _validate_first(records: Sequence[SourceRecord]) -> None:
    if not records:
        return
    first = records[0]
    values = (first.node_id, first.acl_id, first.transaction_id, first.change_set_id)
    if not all(isinstance(value, int) and not isinstance(value, bool) and value >= 0 for value in values):
        raise InputFormatError(FORMAT_HINT, line_number=1)


def canonicalize(
    records: Sequence[SourceRecord],
    *,
    logger: Optional[PrintLogger] = None,
    emitter: Optional[Emitter] = None,
) -> CanonicalSets:
    _validate_first(records)
    sets = CanonicalSets(
        nodes=sorted_unique(record.node_id for record in records),
        acls=sorted_unique(record.acl_id for record in records),
        txns=sorted_unique(record.transaction_id for record in records),
        acltxids=sorted_unique(record.change_set_id for record in records),
        acl_tuples=sorted_unique((record.acl_id, record.transaction_id, record.change_set_id) for record in records),
    )
    emit_log(emitter, level="INFO", msg="dataset_statistics", logger=logger, **sets.stats())
    return sets


__all__ = ["AclTuple", "CanonicalSets", "canonicalize"]
