from __future__ import annotations

import time
from typing import Any, Dict, Optional

from .common import PrintLogger
from .config import InspectorConfig
from .events import Emitter, emit_log
from .query.plan import ANCESTOR_ID, build_source_query, normalize_strategy
from .tools.base import ExecutionTool


def resolve_from_value(config: InspectorConfig, strategy: str, from_value: Optional[str]) -> Any:
    """Range start for the strategy; the ancestor strategy keeps the raw node uuid."""

    if normalize_strategy(strategy) == ANCESTOR_ID:
        return from_value
    if from_value is not None and str(from_value).isdigit():
        return int(from_value)
    return config.default_from_value


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is not None and str(value).isdigit():
        return int(value)
    return None


def run(
    tool: ExecutionTool,
    config: InspectorConfig,
    *,
    strategy: Optional[str] = None,
    from_value: Optional[str] = None,
    to_value: Optional[str] = None,
    max_values: Optional[str] = None,
    output_path: Optional[str] = None,
    logger: PrintLogger,
    emitter: Optional[Emitter] = None,
) -> Dict[str, Any]:
    """
    Extract the source dataset from the backing store into the headless CSV.

    Values that are not integers fall back to the defaults: ``from`` to the
    configured range start, ``to`` and ``max`` to unbounded.
    """

    strategy = normalize_strategy(strategy or config.default_query_strategy)
    output_path = output_path or config.csv_path
    source_query = build_source_query(
        strategy,
        config.database.dbms,
        from_value=resolve_from_value(config, strategy, from_value),
        to_value=None if strategy == ANCESTOR_ID else _optional_int(to_value),
        max_values=_optional_int(max_values),
    )
    emit_log(
        emitter,
        level="INFO",
        msg="export_start",
        dbms=config.database.dbms,
        strategy=strategy,
        logger=logger,
    )
    started = time.monotonic()
    rows = tool.export_dataset(source_query, output_path)
    elapsed = round(time.monotonic() - started, 3)
    emit_log(
        emitter,
        level="INFO",
        msg="export_complete",
        path=output_path,
        rows=rows,
        elapsed_seconds=elapsed,
        logger=logger,
    )
    return {"status": "exported", "path": output_path, "rows": rows, "strategy": strategy, "elapsed_seconds": elapsed}


__all__ = ["resolve_from_value", "run"]
