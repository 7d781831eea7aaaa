from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from index_check.events import emit_log

from ..canonical import CanonicalSets
from ..results import ItemCheckResult
from .base import ItemCheck, ItemKind

CACHED_FIELDS = {"fl": "[cached]*"}


class NodeCheck(ItemCheck):
    KIND = ItemKind(name="nodes", query_field="DBID", doc_type="Node", reindex_param="nodeid")


class AclCheck(ItemCheck):
    """ACLs are verified by id but repaired through their change set and transaction."""

    KIND = ItemKind(
        name="acls",
        query_field="ACLID",
        doc_type="Acl",
        reindex_param="acltxid",
        extra_params=CACHED_FIELDS,
    )

    def run(self, sets: CanonicalSets) -> ItemCheckResult:
        result = self.verify(sets.acls)
        result.missing_tuples = expand_acl_tuples(result.missing, sets.acl_tuples)
        emit_log(
            self.context.emitter,
            level="INFO",
            msg="acl_transactions_to_fix",
            missing_acls=len(result.missing),
            entries=len(result.missing_tuples),
            logger=self.context.logger,
        )
        return result

    def reindex_params(self, entry: Sequence[int]) -> Dict[str, str]:
        _, txid, acltxid = entry
        params = {self.kind.reindex_param: str(acltxid)}
        if self.context.config.fix.reindex_related_transactions:
            params["txid"] = str(txid)
        return params


class TransactionCheck(ItemCheck):
    KIND = ItemKind(name="txns", query_field="TXID", doc_type="Tx", reindex_param="txid", extra_params=CACHED_FIELDS)


class ChangeSetCheck(ItemCheck):
    KIND = ItemKind(
        name="acltxids",
        query_field="ACLTXID",
        doc_type="AclTx",
        reindex_param="acltxid",
        extra_params=CACHED_FIELDS,
    )


def expand_acl_tuples(
    missing_acls: Sequence[int],
    acl_tuples: Sequence[Tuple[int, int, int]],
) -> List[Tuple[int, int, int]]:
    """AclTuple rows whose acl id is missing, matched on the whole id."""

    wanted = set(missing_acls)
    return [row for row in acl_tuples if row[0] in wanted]
