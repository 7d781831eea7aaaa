from __future__ import annotations

from typing import List, Optional

from index_check.events import emit_log

from .checks.base import report_progress
from .context import ReconContext

ERROR_NODE_QUERY = "DOC_TYPE:ErrorNode"
ID_FIELD = "DBID"


def ancestor_query(ancestor: str) -> str:
    return f"ANCESTOR:'workspace://SpacesStore/{ancestor}'"


def scan(context: ReconContext, query: str, *, page_size: int, label: str) -> List[int]:
    """Page through every document matching ``query`` and collect their ``DBID`` values.

    Order is whatever the index returns and duplicates are kept; callers sort
    and deduplicate before comparing.
    """

    endpoint = context.require_query_endpoint()
    collected: List[int] = []
    count = 0
    start = 0
    while True:
        result = endpoint.select(query, rows=page_size, start=start)
        page = result.values(ID_FIELD)
        collected.extend(page)
        count += len(result.docs)
        if count >= result.num_found:
            break
        if not result.docs:
            emit_log(
                context.emitter,
                level="WARN",
                msg="scan_truncated",
                item=label,
                collected=count,
                reported=result.num_found,
                logger=context.logger,
            )
            break
        report_progress(context, label, count, result.num_found)
        start += page_size
    emit_log(context.emitter, level="INFO", msg="scan_complete", item=label, total=count, logger=context.logger)
    return collected


def scan_error_nodes(context: ReconContext, page_size: Optional[int] = None) -> List[int]:
    return scan(
        context,
        ERROR_NODE_QUERY,
        page_size=int(page_size or context.config.solr.error_batch),
        label="error nodes",
    )


def scan_path_nodes(context: ReconContext, ancestor: str, page_size: Optional[int] = None) -> List[int]:
    return scan(
        context,
        ancestor_query(ancestor),
        page_size=int(page_size or context.config.solr.path_batch),
        label="indexed nodes",
    )


__all__ = ["ERROR_NODE_QUERY", "ancestor_query", "scan", "scan_error_nodes", "scan_path_nodes"]
