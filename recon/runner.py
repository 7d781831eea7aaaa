from __future__ import annotations

import time
from typing import List, Optional, Sequence

from index_check.dataset import SourceRecord
from index_check.errors import UnsupportedConfigurationError
from index_check.events import emit_log
from index_check.query.plan import ANCESTOR_ID
from index_check.workspace import ACLS, ERROR_NODES, INDEXED_NODES, NODES, PURGE_NODES, missing_name

from .canonical import CanonicalSets, canonicalize
from .checks import TRANSACTION_KINDS, registry
from .context import ReconContext
from .crosscheck import merge_error_nodes, purge_candidates
from .dispatch import CorrectiveDispatcher
from .results import CheckRunSummary, FixItemSummary, FixRunSummary, ItemCheckResult
from .scanner import scan_error_nodes, scan_path_nodes
from .sets import sorted_unique


def _write_missing(context: ReconContext, result: ItemCheckResult) -> None:
    if result.missing_tuples is not None:
        context.workspace.write_tuples(missing_name(result.kind), result.missing_tuples)
    else:
        context.workspace.write_ids(missing_name(result.kind), result.missing)


def cross_check_error_nodes(context: ReconContext, missing_nodes: Sequence[int]) -> tuple[int, int]:
    """Fold error-flagged index documents into ``missing-nodes``; returns (errors, to_reindex)."""

    emit_log(context.emitter, level="INFO", msg="error_nodes_check_start", logger=context.logger)
    error_nodes = scan_error_nodes(context)
    context.workspace.write_ids(ERROR_NODES, error_nodes)
    merged = merge_error_nodes(missing_nodes, error_nodes)
    context.workspace.write_ids(missing_name(NODES), merged)
    emit_log(
        context.emitter,
        level="INFO",
        msg="nodes_need_reindex",
        error_nodes=len(error_nodes),
        total=len(merged),
        logger=context.logger,
    )
    return len(error_nodes), len(merged)


def cross_check_path_nodes(context: ReconContext, sets: CanonicalSets, ancestor: str) -> tuple[int, int]:
    emit_log(context.emitter, level="INFO", msg="path_nodes_check_start", ancestor=ancestor, logger=context.logger)
    indexed = sorted_unique(scan_path_nodes(context, ancestor))
    context.workspace.write_ids(INDEXED_NODES, indexed)
    purge = purge_candidates(indexed, sets.nodes)
    context.workspace.write_ids(PURGE_NODES, purge)
    emit_log(context.emitter, level="INFO", msg="nodes_need_purge", indexed=len(indexed), total=len(purge), logger=context.logger)
    return len(indexed), len(purge)


def run_check(context: ReconContext, records: Sequence[SourceRecord]) -> CheckRunSummary:
    if context.strategy == ANCESTOR_ID and not context.from_value:
        raise UnsupportedConfigurationError("The ancestor-id strategy requires the ancestor node uuid")
    started = time.monotonic()
    workspace = context.workspace.prepare()
    sets = canonicalize(records, logger=context.logger, emitter=context.emitter)
    sets.write(workspace)
    # Purge candidates from an earlier ancestor run must not be replayed by --fix.
    workspace.remove(INDEXED_NODES)
    workspace.remove(PURGE_NODES)

    summary = CheckRunSummary()
    emit_log(context.emitter, level="INFO", msg="index_check_start", strategy=context.strategy, logger=context.logger)
    for kind in registry.kinds():
        check_cls = registry.get(kind)
        result = check_cls(context).run(sets)
        _write_missing(context, result)
        summary.items.append(result)

    missing_nodes = next(item.missing for item in summary.items if item.kind == NODES)
    summary.error_nodes, summary.nodes_to_reindex = cross_check_error_nodes(context, missing_nodes)

    if context.strategy == ANCESTOR_ID:
        summary.indexed_path_nodes, summary.nodes_to_purge = cross_check_path_nodes(
            context, sets, str(context.from_value)
        )

    summary.elapsed_seconds = round(time.monotonic() - started, 3)
    emit_log(
        context.emitter,
        level="INFO",
        msg="index_check_complete",
        elapsed_seconds=summary.elapsed_seconds,
        base_dir=workspace.base_dir,
        logger=context.logger,
    )
    return summary


def run_error_check(context: ReconContext) -> CheckRunSummary:
    """Collect error nodes only; replaces ``missing-nodes`` with them."""

    started = time.monotonic()
    context.workspace.prepare()
    summary = CheckRunSummary()
    summary.error_nodes, summary.nodes_to_reindex = cross_check_error_nodes(context, [])
    summary.elapsed_seconds = round(time.monotonic() - started, 3)
    return summary


def _load_entries(context: ReconContext, kind: str) -> Optional[List[Sequence[int]]]:
    if kind == ACLS:
        return context.workspace.read_tuples(missing_name(kind))
    ids = context.workspace.read_ids(missing_name(kind))
    if ids is None:
        return None
    return [(value,) for value in ids]


def run_fix(context: ReconContext) -> FixRunSummary:
    """Replay the missing and purge files of the last check against every instance."""

    started = time.monotonic()
    items: List[FixItemSummary] = []
    with CorrectiveDispatcher(context) as dispatcher:
        for kind in registry.kinds():
            if kind in TRANSACTION_KINDS and not context.config.fix.reindex_transactions:
                emit_log(context.emitter, level="INFO", msg="reindex_skipped", item=kind, reason="transaction_reindex_disabled", logger=context.logger)
                items.append(FixItemSummary(kind=kind, action="reindex", skipped=True))
                continue
            entries = _load_entries(context, kind)
            if entries is None:
                emit_log(context.emitter, level="INFO", msg="reindex_skipped", item=kind, reason="no_missing_file", logger=context.logger)
                items.append(FixItemSummary(kind=kind, action="reindex", skipped=True))
                continue
            emit_log(context.emitter, level="INFO", msg="reindex_start", item=kind, total=len(entries), logger=context.logger)
            check = registry.get(kind)(context)
            items.append(dispatcher.reindex(kind, entries, check.reindex_params))

        purge_nodes = context.workspace.read_ids(PURGE_NODES)
        if purge_nodes is not None:
            emit_log(context.emitter, level="INFO", msg="purge_start", total=len(purge_nodes), logger=context.logger)
            items.append(dispatcher.purge(purge_nodes))

    summary = FixRunSummary.from_items(
        items,
        instances=len(context.admin_endpoints),
        elapsed_seconds=round(time.monotonic() - started, 3),
    )
    emit_log(
        context.emitter,
        level="WARN" if summary.failures else "INFO",
        msg="fix_summary",
        failures=summary.failures,
        elapsed_seconds=summary.elapsed_seconds,
        logger=context.logger,
    )
    return summary


__all__ = ["cross_check_error_nodes", "cross_check_path_nodes", "run_check", "run_error_check", "run_fix"]
