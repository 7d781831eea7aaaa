from .factory import EndpointFactory
from .solr import CorrectiveResponse, SolrAdminEndpoint, SolrQueryEndpoint, SolrResult

__all__ = ["CorrectiveResponse", "EndpointFactory", "SolrAdminEndpoint", "SolrQueryEndpoint", "SolrResult"]
