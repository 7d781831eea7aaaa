from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from index_check.common import PrintLogger
from index_check.config import InspectorConfig
from index_check.endpoints.solr import SolrAdminEndpoint, SolrQueryEndpoint
from index_check.events import Emitter
from index_check.workspace import Workspace


@dataclass
class ReconContext:
    """Everything a reconciliation phase needs, built once per invocation."""

    config: InspectorConfig
    logger: PrintLogger
    workspace: Workspace
    query_endpoint: Optional[SolrQueryEndpoint] = None
    admin_endpoints: List[SolrAdminEndpoint] = field(default_factory=list)
    emitter: Optional[Emitter] = None
    strategy: str = "node-id"
    from_value: Optional[str] = None

    def require_query_endpoint(self) -> SolrQueryEndpoint:
        if self.query_endpoint is None:
            raise RuntimeError("query_endpoint_not_configured")
        return self.query_endpoint

    def close(self) -> None:
        if self.query_endpoint is not None:
            self.query_endpoint.close()
        for endpoint in self.admin_endpoints:
            endpoint.close()
