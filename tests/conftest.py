import io
import re
from typing import Callable, Dict, List, Set

import httpx
import pytest

from index_check.common import PrintLogger
from index_check.config import InspectorConfig
from index_check.events import Emitter, EventRecorder
from recon.cli import build_context

FIELDS = {"Node": "DBID", "Acl": "ACLID", "Tx": "TXID", "AclTx": "ACLTXID"}


class FakeSolr:
    """In-memory stand-in for the afts query handler and the core admin handler."""

    def __init__(self) -> None:
        self.indexed: Dict[str, Set[int]] = {doc_type: set() for doc_type in FIELDS}
        self.error_nodes: List[int] = []
        self.path_nodes: Dict[str, List[int]] = {}
        self.select_calls: List[Dict[str, str]] = []
        self.admin_calls: List[tuple] = []
        self.unreachable: Set[str] = set()
        self.malformed = False
        self.admin_status: Callable[[str, Dict[str, str]], int] = lambda host, params: 200

    def _page(self, docs, params):
        rows = int(params["rows"])
        start = int(params.get("start", 0))
        return httpx.Response(
            200,
            json={
                "responseHeader": {"status": 0},
                "response": {"numFound": len(docs), "start": start, "docs": docs[start : start + rows]},
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        params = dict(request.url.params)
        if request.url.path.endswith("/admin/cores"):
            self.admin_calls.append((host, params))
            status = self.admin_status(host, params)
            return httpx.Response(status, text="" if status == 200 else f"failed {params}")
        self.select_calls.append(params)
        if self.malformed:
            return httpx.Response(500, json={"error": {"msg": "index unavailable"}})
        query = params["q"]
        if query == "DOC_TYPE:ErrorNode":
            docs = [{"id": f"error-{value}", "DBID": value} for value in self.error_nodes]
        elif query.startswith("ANCESTOR:"):
            ancestor = query.split("SpacesStore/", 1)[1].rstrip("'")
            docs = [{"DBID": value} for value in self.path_nodes.get(ancestor, [])]
        else:
            doc_type = query.rsplit("DOC_TYPE:", 1)[1]
            field = FIELDS[doc_type]
            wanted = [int(value) for value in re.findall(rf"\b{field}:(\d+)", query)]
            docs = [{field: value} for value in wanted if value in self.indexed[doc_type]]
        return self._page(docs, params)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def admin_params(self, host: str = "localhost") -> List[Dict[str, str]]:
        return [params for call_host, params in self.admin_calls if call_host == host]


@pytest.fixture
def fake_solr():
    return FakeSolr()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def logger(log_stream):
    return PrintLogger(job_name="test", stream=log_stream)


@pytest.fixture
def make_config(tmp_path):
    def _make(**sections) -> InspectorConfig:
        cfg = {
            "runtime": {"base_dir": str(tmp_path / "work")},
            "solr": {"batch": {"request": 100, "error_nodes": 1000, "path_nodes": 1000}},
        }
        for name, values in sections.items():
            merged = dict(cfg.get(name, {}))
            merged.update(values)
            cfg[name] = merged
        return InspectorConfig.from_config(cfg)

    return _make


@pytest.fixture
def make_context(fake_solr, logger, make_config):
    def _make(config=None, strategy="node-id", from_value=None, recorder=None):
        emitter = Emitter()
        if recorder is not None:
            emitter.subscribe(recorder)
        return build_context(
            config or make_config(),
            logger,
            strategy=strategy,
            from_value=from_value,
            emitter=emitter,
            transport=fake_solr.transport(),
        )

    return _make


@pytest.fixture
def recorder():
    return EventRecorder()
