from __future__ import annotations

from typing import List, Optional

import httpx

from ..config import InspectorConfig
from .solr import SolrAdminEndpoint, SolrQueryEndpoint


class EndpointFactory:
    """Construct index endpoints from the run configuration."""

    @staticmethod
    def build_query_endpoint(
        config: InspectorConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> SolrQueryEndpoint:
        return SolrQueryEndpoint(config.solr, transport=transport)

    @staticmethod
    def build_admin_endpoints(
        config: InspectorConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> List[SolrAdminEndpoint]:
        return [
            SolrAdminEndpoint(instance, config.solr, transport=transport)
            for instance in config.solr.all_instances
        ]


__all__ = ["EndpointFactory"]
