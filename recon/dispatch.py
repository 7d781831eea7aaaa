from __future__ import annotations

import enum
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlencode

from index_check.endpoints.solr import PURGE, REINDEX, SolrAdminEndpoint
from index_check.errors import TransportError
from index_check.events import emit_log

from .checks.base import report_progress
from .context import ReconContext
from .results import FixItemSummary


class DispatchStatus(enum.Enum):
    SCHEDULED = "scheduled"
    TRANSPORT_FAILURE = "transport_failure"
    ITEM_FAILURE = "item_failure"


@dataclass
class DispatchOutcome:
    status: DispatchStatus
    instance: str
    action: str
    params: Dict[str, str] = field(default_factory=dict)
    status_code: Optional[int] = None
    body: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is DispatchStatus.SCHEDULED


class CorrectiveDispatcher:
    """Replays reindex and purge requests on every configured index instance.

    With ``parallel`` enabled the instances of one item are contacted
    concurrently, but every response for an item is collected before the
    next item is sent.
    """

    def __init__(self, context: ReconContext, parallel: Optional[bool] = None) -> None:
        if not context.admin_endpoints:
            raise RuntimeError("admin_endpoints_not_configured")
        self.context = context
        self.endpoints: List[SolrAdminEndpoint] = list(context.admin_endpoints)
        self.parallel = context.config.fix.parallel if parallel is None else parallel
        self._executor: Optional[ThreadPoolExecutor] = None
        if self.parallel and len(self.endpoints) > 1:
            self._executor = ThreadPoolExecutor(max_workers=len(self.endpoints), thread_name_prefix="dispatch")

    def __enter__(self) -> "CorrectiveDispatcher":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def send(self, endpoint: SolrAdminEndpoint, action: str, params: Dict[str, str]) -> DispatchOutcome:
        try:
            response = endpoint.send(action, params)
        except TransportError as exc:
            return DispatchOutcome(
                status=DispatchStatus.TRANSPORT_FAILURE,
                instance=endpoint.instance,
                action=action,
                params=params,
                error=str(exc),
            )
        if response.ok:
            return DispatchOutcome(
                status=DispatchStatus.SCHEDULED,
                instance=endpoint.instance,
                action=action,
                params=params,
                status_code=response.status_code,
            )
        self.context.workspace.failure_log.append(
            f"{action} {urlencode(params)} on {endpoint.instance} returned HTTP {response.status_code}",
            response.body,
        )
        return DispatchOutcome(
            status=DispatchStatus.ITEM_FAILURE,
            instance=endpoint.instance,
            action=action,
            params=params,
            status_code=response.status_code,
            body=response.body,
        )

    def dispatch_item(self, action: str, params: Dict[str, str]) -> List[DispatchOutcome]:
        if self._executor is None:
            outcomes: List[DispatchOutcome] = []
            for endpoint in self.endpoints:
                outcome = self.send(endpoint, action, params)
                outcomes.append(outcome)
                if outcome.status is DispatchStatus.TRANSPORT_FAILURE:
                    break
        else:
            futures = [self._executor.submit(self.send, endpoint, action, params) for endpoint in self.endpoints]
            outcomes = [future.result() for future in futures]
        for outcome in outcomes:
            if outcome.status is DispatchStatus.TRANSPORT_FAILURE:
                emit_log(
                    self.context.emitter,
                    level="ERROR",
                    msg="dispatch_transport_failure",
                    instance=outcome.instance,
                    action=action,
                    err=outcome.error,
                    logger=self.context.logger,
                )
                raise TransportError(outcome.error or f"Cannot communicate with SOLR on {outcome.instance}", target=outcome.instance)
        return outcomes

    def dispatch(
        self,
        kind: str,
        action: str,
        entries: Sequence[Sequence[int]],
        params_for: Callable[[Sequence[int]], Dict[str, str]],
    ) -> FixItemSummary:
        summary = FixItemSummary(kind=kind, action=action, total=len(entries))
        for count, entry in enumerate(entries, start=1):
            params = params_for(entry)
            outcomes = self.dispatch_item(action, params)
            failures = [outcome for outcome in outcomes if not outcome.ok]
            for outcome in failures:
                emit_log(
                    self.context.emitter,
                    level="ERROR",
                    msg=f"{action}_failed",
                    item=kind,
                    params=urlencode(params),
                    instance=outcome.instance,
                    status_code=outcome.status_code,
                    error_log=self.context.workspace.failure_log.path,
                    logger=self.context.logger,
                )
            if failures:
                summary.failed += 1
            else:
                summary.scheduled += 1
            report_progress(self.context, kind, count, summary.total)
        emit_log(
            self.context.emitter,
            level="INFO",
            msg=f"{action}_scheduled",
            item=kind,
            scheduled=summary.scheduled,
            failed=summary.failed,
            logger=self.context.logger,
        )
        return summary

    def reindex(
        self,
        kind: str,
        entries: Sequence[Sequence[int]],
        params_for: Callable[[Sequence[int]], Dict[str, str]],
    ) -> FixItemSummary:
        return self.dispatch(kind, REINDEX, entries, params_for)

    def purge(self, node_ids: Iterable[int]) -> FixItemSummary:
        entries = [(node_id,) for node_id in node_ids]
        return self.dispatch("nodes", PURGE, entries, lambda entry: {"nodeid": str(entry[0])})


__all__ = ["CorrectiveDispatcher", "DispatchOutcome", "DispatchStatus"]
