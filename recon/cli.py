from __future__ import annotations

import argparse
import json
import os
from typing import Any, Dict, List, Optional

from index_check import export
from index_check.common import PrintLogger
from index_check.config import InspectorConfig, load_config
from index_check.dataset import read_dataset
from index_check.endpoints.factory import EndpointFactory
from index_check.errors import IndexCheckError, UnsupportedConfigurationError
from index_check.events import Emitter
from index_check.query.plan import ANCESTOR_ID, STRATEGIES, normalize_strategy
from index_check.workspace import Workspace

from .context import ReconContext
from .runner import run_check, run_error_check, run_fix

DEFAULT_CONFIG_FILE = ".config"

EPILOG = """\
examples:
  index-check --query
      export every node from DBID 0 with its acl, transaction and change set
  index-check --query --strategy transaction-id --from 100000 --to 200000 --max 5000
      export nodes of transactions 100000..200000, limited to 5000 rows
  index-check --check --csv ~/myownfile.csv
      cross check a supplied headless CSV (nodeid,aclid,txnid,acltxid) with the index
  index-check --fix
      reindex the items reported missing by the last check
  index-check --query --strategy ancestor-id --from <uuid> --check --fix
      export, check and repair the tree below an ancestor folder, purging orphans
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="index-check",
        description="Check the consistency of a search index against the repository database and repair it.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help=f"JSON or KEY=VALUE configuration file (default: {DEFAULT_CONFIG_FILE})", default=None)
    parser.add_argument("--query", "-q", action="store_true", help="Export the dataset directly from the database")
    parser.add_argument(
        "--strategy",
        "-s",
        help=f"Strategy for selecting the exported rows: {', '.join(STRATEGIES)}",
        default=None,
    )
    parser.add_argument(
        "--from",
        "-f",
        dest="from_value",
        help="Initial value of the query range; the ancestor node uuid for ancestor-id",
        default=None,
    )
    parser.add_argument("--to", "-t", dest="to_value", help="Final value of the query range", default=None)
    parser.add_argument("--max", "-m", dest="max_values", help="Limit the number of exported rows", default=None)
    parser.add_argument("--check", "-c", action="store_true", help="Cross check the dataset with the index")
    parser.add_argument(
        "--check-errors-only",
        action="store_true",
        help="Only gather the error nodes reported by the index",
    )
    parser.add_argument("--csv", help="Dataset to cross check instead of the exported one", default=None)
    parser.add_argument("--fix", action="store_true", help="Reindex missing items and purge orphaned nodes")
    parser.add_argument("--output-json", help="Optional path to write the run summary as JSON", default=None)
    parser.add_argument(
        "--fail-on-errors",
        action="store_true",
        help="Exit with code 2 if any corrective request failed",
        default=False,
    )
    args = parser.parse_args(argv)
    args.print_help = parser.print_help
    return args


def _load_cfg(path: Optional[str]) -> Dict[str, Any]:
    if path:
        return load_config(path)
    if os.path.isfile(DEFAULT_CONFIG_FILE):
        return load_config(DEFAULT_CONFIG_FILE)
    return {}


def build_context(
    config: InspectorConfig,
    logger: PrintLogger,
    *,
    strategy: str,
    from_value: Optional[str],
    emitter: Optional[Emitter] = None,
    transport=None,
) -> ReconContext:
    return ReconContext(
        config=config,
        logger=logger,
        workspace=Workspace(config.base_dir).prepare(),
        query_endpoint=EndpointFactory.build_query_endpoint(config, transport=transport),
        admin_endpoints=EndpointFactory.build_admin_endpoints(config, transport=transport),
        emitter=emitter,
        strategy=strategy,
        from_value=from_value,
    )


def execute(args: argparse.Namespace, config: InspectorConfig, logger: PrintLogger, *, transport=None) -> Dict[str, Any]:
    strategy = normalize_strategy(args.strategy or config.default_query_strategy)
    if strategy not in STRATEGIES:
        raise UnsupportedConfigurationError(
            f"Query strategy '{args.strategy}' is not valid. Supported values are: {', '.join(STRATEGIES)}"
        )
    if strategy == ANCESTOR_ID and not args.from_value and (args.query or args.check):
        raise UnsupportedConfigurationError("The ancestor-id strategy requires --from with the ancestor node uuid")
    results: Dict[str, Any] = {}
    Workspace(config.base_dir).prepare()
    if args.query:
        from index_check.tools.sqlalchemy import SQLAlchemyTool

        tool = SQLAlchemyTool.from_config(config.database)
        try:
            results["export"] = export.run(
                tool,
                config,
                strategy=strategy,
                from_value=args.from_value,
                to_value=args.to_value,
                max_values=args.max_values,
                logger=logger,
            )
        finally:
            tool.stop()

    run_check_phase = args.check or (args.query and args.fix)
    if not (run_check_phase or args.check_errors_only or args.fix):
        return results
    records = read_dataset(args.csv or config.csv_path) if run_check_phase else None
    context = build_context(config, logger, strategy=strategy, from_value=args.from_value, transport=transport)
    try:
        if records is not None:
            results["check"] = run_check(context, records).to_dict()
        elif args.check_errors_only:
            results["check"] = run_error_check(context).to_dict()
        if args.fix:
            results["fix"] = run_fix(context).to_dict()
    finally:
        context.close()
    return results


def run_cli(argv: Optional[List[str]] = None, *, transport=None) -> Dict[str, Any]:
    args = parse_args(argv)
    if not (args.query or args.check or args.check_errors_only or args.fix):
        args.print_help()
        return {}
    logger = PrintLogger(job_name="index_check")
    try:
        config = InspectorConfig.from_config(_load_cfg(args.config))
        logger = PrintLogger(job_name=config.job_name, file_path=config.log_file)
        results = execute(args, config, logger, transport=transport)
    except IndexCheckError as exc:
        logger.error("run_failed", error_type=type(exc).__name__, err=str(exc))
        raise SystemExit(1) from exc
    if args.output_json:
        with open(args.output_json, "w", encoding="utf-8") as handle:
            json.dump(results, handle, indent=2, sort_keys=True)
    else:
        print(json.dumps(results, indent=2, sort_keys=True))
    if args.fail_on_errors and results.get("fix", {}).get("failures"):
        raise SystemExit(2)
    return results


def main() -> None:
    run_cli()


__all__ = ["build_context", "execute", "main", "parse_args", "run_cli"]
