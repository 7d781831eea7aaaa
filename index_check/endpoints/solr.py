"""HTTP endpoints for the search index.

``SolrQueryEndpoint`` reads result envelopes from the ``afts`` handler of the
nominated shard. ``SolrAdminEndpoint`` sends reindex and purge actions to the
core admin handler of a single instance.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from ..config import SolrConfig, TlsConfig
from ..errors import MalformedResponseError, TransportError

REINDEX = "reindex"
PURGE = "purge"
ACTIONS = (REINDEX, PURGE)


def build_ssl_context(tls: TlsConfig) -> Union[ssl.SSLContext, bool]:
    """Client certificate context; server certificates are not verified, like ``curl -k``."""

    if not tls.enabled:
        return True
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    if tls.cert:
        context.load_cert_chain(tls.cert, keyfile=tls.key, password=tls.password)
    return context


def _build_client(solr_cfg: SolrConfig, transport: Optional[httpx.BaseTransport]) -> httpx.Client:
    kwargs: Dict[str, Any] = {"headers": solr_cfg.headers}
    if transport is not None:
        kwargs["transport"] = transport
    else:
        kwargs["verify"] = build_ssl_context(solr_cfg.tls)
    return httpx.Client(**kwargs)


@dataclass
class SolrResult:
    num_found: int
    docs: List[Dict[str, Any]] = field(default_factory=list)

    def values(self, field_name: str) -> List[int]:
        """Integer values of ``field_name`` across the returned documents."""

        values: List[int] = []
        for doc in self.docs:
            value = doc.get(field_name)
            if isinstance(value, list):
                value = value[0] if value else None
            if value is None:
                continue
            try:
                values.append(int(value))
            except (TypeError, ValueError):
                raise MalformedResponseError(f"Unexpected {field_name} value in SOLR response: {value!r}", body=doc) from None
        return values


def parse_envelope(payload: Any) -> SolrResult:
    if not isinstance(payload, Mapping):
        raise MalformedResponseError("Unexpected SOLR response: body is not a JSON object", body=payload)
    response = payload.get("response")
    if not isinstance(response, Mapping):
        raise MalformedResponseError("Unexpected SOLR response: missing 'response' envelope", body=payload)
    num_found = response.get("numFound")
    if isinstance(num_found, bool) or not isinstance(num_found, int):
        raise MalformedResponseError("Unexpected SOLR response: 'numFound' is not an integer", body=payload)
    docs = response.get("docs") or []
    if not isinstance(docs, list):
        raise MalformedResponseError("Unexpected SOLR response: 'docs' is not a list", body=payload)
    return SolrResult(num_found=num_found, docs=[doc for doc in docs if isinstance(doc, Mapping)])


class SolrQueryEndpoint:
    def __init__(self, solr_cfg: SolrConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.solr_cfg = solr_cfg
        self.url = solr_cfg.query_url
        self._client = _build_client(solr_cfg, transport)
        self.requests = 0

    def select(
        self,
        query: str,
        *,
        rows: int,
        start: int = 0,
        extra_params: Optional[Mapping[str, str]] = None,
    ) -> SolrResult:
        params: Dict[str, Any] = {"indent": "on", "wt": "json", "rows": rows, "start": start, "q": query}
        if extra_params:
            params.update(extra_params)
        params.update(self.solr_cfg.shard_params)
        self.requests += 1
        try:
            resp = self._client.get(self.url, params=params)
        except httpx.RequestError as exc:
            raise TransportError(f"Cannot communicate with SOLR on {self.url}: {exc}", target=self.url) from exc
        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Unexpected SOLR response (HTTP {resp.status_code}): {resp.text[:500]}", body=resp.text
            ) from exc
        return parse_envelope(payload)

    def close(self) -> None:
        self._client.close()


@dataclass
class CorrectiveResponse:
    instance: str
    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class SolrAdminEndpoint:
    """Core admin handler of one index instance."""

    def __init__(self, instance_url: str, solr_cfg: SolrConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.instance = instance_url.rstrip("/")
        self.url = f"{self.instance}/admin/cores"
        self._client = _build_client(solr_cfg, transport)

    def send(self, action: str, params: Mapping[str, Any]) -> CorrectiveResponse:
        if action not in ACTIONS:
            raise ValueError(f"Unsupported corrective action: {action}")
        query: Dict[str, Any] = {"action": action}
        query.update(params)
        try:
            resp = self._client.get(self.url, params=query)
        except httpx.RequestError as exc:
            raise TransportError(f"Cannot communicate with SOLR on {self.instance}: {exc}", target=self.instance) from exc
        return CorrectiveResponse(instance=self.instance, status_code=resp.status_code, body=resp.text)

    def close(self) -> None:
        self._client.close()


__all__ = [
    "ACTIONS",
    "PURGE",
    "REINDEX",
    "CorrectiveResponse",
    "SolrAdminEndpoint",
    "SolrQueryEndpoint",
    "SolrResult",
    "build_ssl_context",
    "parse_envelope",
]
