from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .errors import UnsupportedConfigurationError
from .query.plan import DIALECTS, STRATEGIES, normalize_strategy

DEFAULT_SOLR_URL = "http://localhost:8083/solr"
DEFAULT_SHARD = "alfresco"
SECRET_HEADER = "X-Alfresco-Search-Secret"

_TRUE_VALUES = {"1", "true", "yes", "on"}

# Shell-style KEY=VALUE settings map onto the JSON layout.
_ENV_KEYS: Dict[str, Tuple[str, str]] = {
    "DBMS": ("database", "dbms"),
    "DBHOST": ("database", "host"),
    "DBPORT": ("database", "port"),
    "DBUSER": ("database", "user"),
    "DBPASS": ("database", "password"),
    "DBNAME": ("database", "name"),
    "DBSID": ("database", "sid"),
    "SOLRURL": ("solr", "url"),
    "SOLRSECRET": ("solr", "secret"),
    "SHARD": ("solr", "shard"),
    "SHARDLIST": ("solr", "shard_list"),
    "SOLR_INSTANCES": ("solr", "instances"),
    "BASEFOLDER": ("runtime", "base_dir"),
    "DEFAULT_FROM_VALUE": ("runtime", "default_from_value"),
    "DEFAULT_QUERY_STRATEGY": ("runtime", "default_query_strategy"),
    "PARALLEL_FIX": ("fix", "parallel"),
    "REINDEX_TRANSACTIONS": ("fix", "reindex_transactions"),
    "REINDEX_RELATED_TRANSACTIONS": ("fix", "reindex_related_transactions"),
}
_ENV_BATCH_KEYS = {
    "BATCH_REQUEST_NUM": ("request",),
    "BATCH_QUERY_NODES_NUM": ("error_nodes", "path_nodes"),
}
_ENV_TLS_KEYS = {
    "SSL_ENABLED": "enabled",
    "SSL_CERT": "cert",
    "SSL_KEY": "key",
    "SSL_CERT_PASSWORD": "password",
}


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _as_list(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(item).strip().rstrip("/") for item in value if str(item).strip())


def parse_env_file(text: str) -> Dict[str, Any]:
    """Translate a ``KEY=VALUE`` config file into the nested JSON layout."""

    cfg: Dict[str, Any] = {"runtime": {}, "database": {}, "solr": {}, "fix": {}}
    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if key.startswith("export "):
            key = key[len("export "):].strip()
        value = value.strip("'\"")
        if key in _ENV_KEYS:
            section, name = _ENV_KEYS[key]
            cfg[section][name] = value
        elif key in _ENV_BATCH_KEYS:
            batch = cfg["solr"].setdefault("batch", {})
            for name in _ENV_BATCH_KEYS[key]:
                batch[name] = value
        elif key in _ENV_TLS_KEYS:
            cfg["solr"].setdefault("tls", {})[_ENV_TLS_KEYS[key]] = value
    return cfg


def load_config(path: str) -> Dict[str, Any]:
    if not os.path.isfile(path):
        raise UnsupportedConfigurationError(f"Configuration file not found: {path}")
    with open(path, "r", encoding="utf-8") as handle:
        text = handle.read()
    if path.endswith(".json") or text.lstrip().startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise UnsupportedConfigurationError(f"Invalid JSON configuration {path}: {exc}") from exc
    return parse_env_file(text)


def validate_config(cfg: Dict[str, Any]) -> None:
    def _positive_int(section: Dict[str, Any], key: str, context: str) -> None:
        value = section.get(key)
        if value is None or value == "":
            return
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"{context}.{key} must be an integer") from None
        if number < 1:
            raise ValueError(f"{context}.{key} must be positive")

    def _section(name: str) -> Dict[str, Any]:
        section = cfg.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"{name} must be an object when provided")
        return section

    try:
        if not isinstance(cfg, dict):
            raise ValueError("configuration must be an object")
        runtime = _section("runtime")
        database = _section("database")
        solr = _section("solr")
        _section("fix")

        dbms = str(database.get("dbms") or "pg").lower()
        if dbms not in DIALECTS:
            raise UnsupportedConfigurationError(
                f"Unsupported DBMS '{dbms}'. Supported values are: {', '.join(sorted(DIALECTS))}"
            )
        _positive_int(database, "port", "database")

        strategy = runtime.get("default_query_strategy")
        if strategy and normalize_strategy(strategy) not in STRATEGIES:
            raise UnsupportedConfigurationError(
                f"Unsupported query strategy '{strategy}'. Supported values are: {', '.join(STRATEGIES)}"
            )
        from_value = runtime.get("default_from_value")
        if from_value not in (None, "") and not str(from_value).isdigit():
            raise ValueError("runtime.default_from_value must be a non-negative integer")

        batch = solr.get("batch") or {}
        if not isinstance(batch, dict):
            raise ValueError("solr.batch must be an object when provided")
        for key in ("request", "error_nodes", "path_nodes"):
            _positive_int(batch, key, "solr.batch")

        tls = solr.get("tls") or {}
        if not isinstance(tls, dict):
            raise ValueError("solr.tls must be an object when provided")
        if _as_bool(tls.get("enabled")) and not tls.get("cert"):
            raise ValueError("solr.tls.cert is required when TLS is enabled")

        instances = solr.get("instances")
        if instances is not None and not isinstance(instances, (str, list, tuple)):
            raise ValueError("solr.instances must be a list or comma separated string")
        if solr.get("shard") and not solr.get("shard_list"):
            raise ValueError("solr.shard_list is required when solr.shard is configured")
    except UnsupportedConfigurationError:
        raise
    except ValueError as exc:
        raise UnsupportedConfigurationError(str(exc)) from exc


@dataclass(frozen=True)
class DatabaseConfig:
    dbms: str = "pg"
    host: Optional[str] = None
    port: int = 5432
    user: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    sid: Optional[str] = None
    url: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "DatabaseConfig":
        cfg = dict(cfg or {})
        port = cfg.get("port")
        return cls(
            dbms=str(cfg.get("dbms") or "pg").lower(),
            host=cfg.get("host"),
            port=int(port) if port not in (None, "") else 5432,
            user=cfg.get("user"),
            password=cfg.get("password"),
            name=cfg.get("name"),
            sid=cfg.get("sid"),
            url=cfg.get("url"),
            options=dict(cfg.get("options") or {}),
        )


@dataclass(frozen=True)
class TlsConfig:
    enabled: bool = False
    cert: Optional[str] = None
    key: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "TlsConfig":
        cfg = dict(cfg or {})
        return cls(
            enabled=_as_bool(cfg.get("enabled")),
            cert=cfg.get("cert"),
            key=cfg.get("key"),
            password=cfg.get("password"),
        )


@dataclass(frozen=True)
class SolrConfig:
    url: str = DEFAULT_SOLR_URL
    secret: str = "secret"
    shard: Optional[str] = None
    shard_list: Optional[str] = None
    instances: Tuple[str, ...] = ()
    request_batch: int = 100
    error_batch: int = 1000
    path_batch: int = 1000
    tls: TlsConfig = field(default_factory=TlsConfig)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "SolrConfig":
        cfg = dict(cfg or {})
        batch = cfg.get("batch") or {}
        return cls(
            url=str(cfg.get("url") or DEFAULT_SOLR_URL).rstrip("/"),
            secret=str(cfg.get("secret") or "secret"),
            shard=cfg.get("shard") or None,
            shard_list=cfg.get("shard_list") or None,
            instances=_as_list(cfg.get("instances")),
            request_batch=int(batch.get("request") or 100),
            error_batch=int(batch.get("error_nodes") or 1000),
            path_batch=int(batch.get("path_nodes") or 1000),
            tls=TlsConfig.from_config(cfg.get("tls") or {}),
        )

    @property
    def query_core(self) -> str:
        return self.shard or DEFAULT_SHARD

    @property
    def query_url(self) -> str:
        return f"{self.url}/{self.query_core}/afts"

    @property
    def shard_params(self) -> Dict[str, str]:
        if self.shard:
            return {"shards": self.shard_list or ""}
        return {}

    @property
    def headers(self) -> Dict[str, str]:
        return {SECRET_HEADER: self.secret}

    @property
    def all_instances(self) -> Tuple[str, ...]:
        """Primary instance followed by every additional instance, without repeats."""

        ordered = [self.url]
        for instance in self.instances:
            if instance not in ordered:
                ordered.append(instance)
        return tuple(ordered)


@dataclass(frozen=True)
class FixConfig:
    parallel: bool = False
    reindex_transactions: bool = True
    reindex_related_transactions: bool = True

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "FixConfig":
        cfg = dict(cfg or {})
        return cls(
            parallel=_as_bool(cfg.get("parallel")),
            reindex_transactions=_as_bool(cfg.get("reindex_transactions"), default=True),
            reindex_related_transactions=_as_bool(cfg.get("reindex_related_transactions"), default=True),
        )


@dataclass(frozen=True)
class InspectorConfig:
    """Immutable configuration built once per invocation."""

    base_dir: str = "index_check"
    csv_filename: str = "output.csv"
    default_from_value: int = 0
    default_query_strategy: str = "node-id"
    job_name: str = "index_check"
    log_file: Optional[str] = None
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    solr: SolrConfig = field(default_factory=SolrConfig)
    fix: FixConfig = field(default_factory=FixConfig)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "InspectorConfig":
        validate_config(cfg)
        runtime = cfg.get("runtime") or {}
        from_value = runtime.get("default_from_value")
        return cls(
            base_dir=str(runtime.get("base_dir") or "index_check"),
            csv_filename=str(runtime.get("csv_filename") or "output.csv"),
            default_from_value=int(from_value) if from_value not in (None, "") else 0,
            default_query_strategy=normalize_strategy(runtime.get("default_query_strategy") or "node-id"),
            job_name=str(runtime.get("job_name") or "index_check"),
            log_file=runtime.get("log_file"),
            database=DatabaseConfig.from_config(cfg.get("database") or {}),
            solr=SolrConfig.from_config(cfg.get("solr") or {}),
            fix=FixConfig.from_config(cfg.get("fix") or {}),
        )

    @property
    def csv_path(self) -> str:
        return os.path.join(self.base_dir, self.csv_filename)


__all__ = [
    "DatabaseConfig",
    "FixConfig",
    "InspectorConfig",
    "SolrConfig",
    "TlsConfig",
    "load_config",
    "parse_env_file",
    "validate_config",
]
