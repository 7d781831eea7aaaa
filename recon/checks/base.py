from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Type

from index_check.events import emit_log

from ..canonical import CanonicalSets
from ..context import ReconContext
from ..results import ItemCheckResult
from ..sets import merge_difference, partition, sorted_unique


@dataclass(frozen=True)
class ItemKind:
    """How one kind of identifier is looked up in, and repaired on, the index."""

    name: str
    query_field: str
    doc_type: str
    reindex_param: str
    extra_params: Mapping[str, str] = field(default_factory=dict)

    def build_query(self, ids: Sequence[int]) -> str:
        clauses = " OR ".join(f"{self.query_field}:{value}" for value in ids)
        return f"({clauses}) AND DOC_TYPE:{self.doc_type}"


class CheckRegistry:
    """Registry of item checks keyed by kind name, in registration order."""

    def __init__(self) -> None:
        self._by_kind: Dict[str, Type["ItemCheck"]] = {}

    def register(self, check_cls: Type["ItemCheck"]) -> None:
        self._by_kind[check_cls.KIND.name] = check_cls

    def get(self, kind: str) -> Optional[Type["ItemCheck"]]:
        return self._by_kind.get(kind.lower())

    def kinds(self) -> List[str]:
        return list(self._by_kind)


registry = CheckRegistry()


def report_progress(context: ReconContext, label: str, done: int, total: int) -> None:
    percent = (done * 100 // total) if total else 100
    emit_log(
        context.emitter,
        level="INFO",
        msg="check_progress",
        item=label,
        processed=done,
        total=total,
        percent=percent,
        logger=context.logger,
    )


class ItemCheck:
    """Batched existence verification of one canonical set against the index."""

    KIND: ItemKind

    def __init__(self, context: ReconContext, batch_size: Optional[int] = None) -> None:
        self.context = context
        self.batch_size = int(batch_size or context.config.solr.request_batch)

    @property
    def kind(self) -> ItemKind:
        return self.KIND

    def run(self, sets: CanonicalSets) -> ItemCheckResult:
        return self.verify(sets.for_kind(self.kind.name))

    def verify(self, ids: Sequence[int]) -> ItemCheckResult:
        endpoint = self.context.require_query_endpoint()
        ids = sorted_unique(ids)
        total = len(ids)
        missing: List[int] = []
        processed = 0
        lookups = 0
        for batch in partition(ids, self.batch_size):
            result = endpoint.select(
                self.kind.build_query(batch),
                rows=self.batch_size,
                extra_params=self.kind.extra_params,
            )
            lookups += 1
            if result.num_found != len(batch):
                matched = sorted_unique(result.values(self.kind.query_field))
                missing.extend(merge_difference(batch, matched))
            processed += len(batch)
            report_progress(self.context, self.kind.name, processed, total)
        emit_log(
            self.context.emitter,
            level="INFO",
            msg="item_check_complete",
            item=self.kind.name,
            checked=total,
            missing=len(missing),
            lookups=lookups,
            logger=self.context.logger,
        )
        return ItemCheckResult(kind=self.kind.name, checked=total, missing=missing, lookups=lookups)

    def reindex_params(self, entry: Sequence[int]) -> Dict[str, str]:
        """Corrective endpoint parameters for one missing entry."""

        return {self.kind.reindex_param: str(entry[0])}
