from __future__ import annotations

import csv
from typing import Any, Dict, Iterator, Optional, Tuple

try:
    from sqlalchemy import create_engine, text
    from sqlalchemy.engine import URL, Engine
    from sqlalchemy.exc import SQLAlchemyError
except ImportError as exc:  # pragma: no cover - dependency guard
    raise RuntimeError("Database extraction requires the 'sqlalchemy' package") from exc

from ..config import DatabaseConfig
from ..errors import InputFormatError, TransportError, UnsupportedConfigurationError
from ..query.plan import SourceQuery
from .base import ExecutionTool

_DRIVERS = {
    "pg": "postgresql+psycopg2",
    "ora": "oracle+oracledb",
    "mysql": "mysql+pymysql",
}


def build_database_url(db_cfg: DatabaseConfig) -> Any:
    if db_cfg.url:
        return db_cfg.url
    driver = _DRIVERS.get(db_cfg.dbms)
    if driver is None:
        raise UnsupportedConfigurationError(
            f"Unsupported DBMS '{db_cfg.dbms}'. Supported values are: {', '.join(sorted(_DRIVERS))}"
        )
    query: Dict[str, str] = {}
    database = db_cfg.name
    if db_cfg.dbms == "ora":
        database = None
        if db_cfg.sid:
            query["service_name"] = db_cfg.sid
    return URL.create(
        driver,
        username=db_cfg.user,
        password=db_cfg.password,
        host=db_cfg.host,
        port=db_cfg.port,
        database=database,
        query=query,
    )


class SQLAlchemyTool(ExecutionTool):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def iter_rows(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                result = conn.execution_options(stream_results=True).execute(text(sql), params or {})
                for row in result:
                    yield dict(row._mapping)
        except SQLAlchemyError as exc:
            raise TransportError(f"Error occurred when querying the database: {exc}", target=str(self._engine.url)) from exc

    def export_dataset(self, source_query: SourceQuery, path: str) -> int:
        """Write the extraction rows to a headless four column CSV and return the row count."""

        rows = 0
        with open(path, "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            for record in self.iter_rows(source_query.sql, source_query.params):
                writer.writerow(_record_values(record))
                rows += 1
        return rows

    @classmethod
    def from_config(cls, db_cfg: DatabaseConfig) -> "SQLAlchemyTool":
        engine = create_engine(build_database_url(db_cfg), **db_cfg.options)
        return cls(engine)

    def stop(self) -> None:
        if self._engine:
            self._engine.dispose()


def _record_values(record: Dict[str, Any]) -> Tuple[Any, ...]:
    values = tuple(record.values())
    if len(values) != 4:
        raise InputFormatError(f"Extraction query returned {len(values)} columns, expected 4")
    return tuple(int(value) for value in values)


__all__ = ["SQLAlchemyTool", "build_database_url"]
