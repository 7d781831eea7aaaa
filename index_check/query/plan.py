from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from ..errors import UnsupportedConfigurationError

NODE_ID = "node-id"
TRANSACTION_ID = "transaction-id"
TRANSACTION_COMMIT_TIME = "transaction-committimems"
ANCESTOR_ID = "ancestor-id"

STRATEGIES = (NODE_ID, TRANSACTION_ID, TRANSACTION_COMMIT_TIME, ANCESTOR_ID)


@dataclass(frozen=True)
class Dialect:
    name: str
    true_literal: str = "true"
    false_literal: str = "false"
    limit_style: str = "fetch"
    recursive_keyword: str = "RECURSIVE "

    def limit_clause(self, limit: Optional[int]) -> str:
        if limit is None:
            return ""
        if self.limit_style == "limit":
            return f" LIMIT {int(limit)}"
        return f" FETCH FIRST {int(limit)} ROWS ONLY"


DIALECTS: Dict[str, Dialect] = {
    "pg": Dialect("pg"),
    "ora": Dialect("ora", true_literal="1", false_literal="0", recursive_keyword=""),
    "mysql": Dialect("mysql", limit_style="limit"),
}


def normalize_strategy(value: Any) -> str:
    return str(value or "").strip().lower().replace("_", "-")


@dataclass(frozen=True)
class SelectItem:
    expression: str
    alias: Optional[str] = None

    def render(self) -> str:
        return f"{self.expression} AS {self.alias}" if self.alias else self.expression


@dataclass(frozen=True)
class QueryPlan:
    selects: Sequence[SelectItem]
    source: str
    joins: Sequence[str] = field(default_factory=list)
    filters: Sequence[str] = field(default_factory=list)
    order_by: Sequence[str] = field(default_factory=list)
    limit: Optional[int] = None
    with_clause: Optional[str] = None

    def with_filter(self, predicate: Optional[str]) -> "QueryPlan":
        if not predicate:
            return self
        return QueryPlan(
            selects=self.selects,
            source=self.source,
            joins=self.joins,
            filters=(*self.filters, predicate),
            order_by=self.order_by,
            limit=self.limit,
            with_clause=self.with_clause,
        )

    def render(self, dialect: Dialect) -> str:
        select_clause = ", ".join(sel.render() for sel in self.selects)
        join_clause = "".join(f" {join}" for join in self.joins)
        where_clause = ""
        if self.filters:
            where_clause = " WHERE " + " AND ".join(f"({expr})" for expr in self.filters)
        order_clause = ""
        if self.order_by:
            order_clause = " ORDER BY " + ", ".join(self.order_by)
        prefix = f"{self.with_clause} " if self.with_clause else ""
        return (
            f"{prefix}SELECT {select_clause} FROM {self.source}{join_clause}"
            f"{where_clause}{order_clause}{dialect.limit_clause(self.limit)}"
        )


@dataclass(frozen=True)
class SourceQuery:
    """Rendered extraction statement plus its bound parameters."""

    strategy: str
    dialect: str
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)


def _node_selects(txn_expression: str = "n.transaction_id") -> Sequence[SelectItem]:
    return (
        SelectItem("n.id", "node_id"),
        SelectItem("n.acl_id", "acl_id"),
        SelectItem(txn_expression, "transaction_id"),
        SelectItem("acl.acl_change_set", "acl_change_set"),
    )


def _indexable_joins(dialect: Dialect) -> Sequence[str]:
    return (
        "INNER JOIN alf_access_control_list acl ON (acl.id = n.acl_id)",
        "INNER JOIN alf_store s ON (n.store_id = s.id AND s.protocol = 'workspace' AND s.identifier = 'SpacesStore')",
        "LEFT JOIN alf_node_properties p ON (p.node_id = n.id"
        " AND p.qname_id IN (SELECT id FROM alf_qname WHERE local_name = 'isIndexed')"
        f" AND p.boolean_value = {dialect.false_literal})",
    )


def _range_plan(
    base: QueryPlan,
    column: str,
    params: Dict[str, Any],
    from_value: Any,
    to_value: Optional[int],
) -> QueryPlan:
    params["from_value"] = int(from_value)
    plan = base.with_filter(f"{column} >= :from_value")
    if to_value is not None:
        params["to_value"] = int(to_value)
        plan = plan.with_filter(f"{column} <= :to_value")
    return plan


def build_source_query(
    strategy: str,
    dbms: str,
    *,
    from_value: Any = 0,
    to_value: Optional[int] = None,
    max_values: Optional[int] = None,
) -> SourceQuery:
    """Render the extraction SQL selecting ``node, acl, transaction, change set`` rows."""

    strategy = normalize_strategy(strategy)
    dialect = DIALECTS.get(str(dbms or "").lower())
    if dialect is None:
        raise UnsupportedConfigurationError(
            f"Unsupported DBMS '{dbms}'. Supported values are: {', '.join(sorted(DIALECTS))}"
        )
    params: Dict[str, Any] = {}
    joins = _indexable_joins(dialect)
    if strategy == NODE_ID:
        base = QueryPlan(selects=_node_selects(), source="alf_node n", joins=joins, order_by=("n.id",), limit=max_values)
        plan = _range_plan(base, "n.id", params, from_value, to_value)
    elif strategy == TRANSACTION_ID:
        base = QueryPlan(selects=_node_selects(), source="alf_node n", joins=joins, order_by=("n.id",), limit=max_values)
        plan = _range_plan(base, "n.transaction_id", params, from_value, to_value)
    elif strategy == TRANSACTION_COMMIT_TIME:
        base = QueryPlan(
            selects=_node_selects("t.id"),
            source="alf_node n",
            joins=("INNER JOIN alf_transaction t ON (n.transaction_id = t.id)", *joins),
            order_by=("n.id",),
            limit=max_values,
        )
        plan = _range_plan(base, "t.commit_time_ms", params, from_value, to_value)
    elif strategy == ANCESTOR_ID:
        if from_value in (None, ""):
            raise UnsupportedConfigurationError("The ancestor-id strategy requires --from with the ancestor node uuid")
        params["from_value"] = str(from_value)
        true_literal = dialect.true_literal
        with_clause = (
            f"WITH {dialect.recursive_keyword}tree (child_node_id) AS ("
            " SELECT ca.child_node_id FROM alf_child_assoc ca"
            " INNER JOIN alf_node parent ON (parent.id = ca.parent_node_id)"
            f" WHERE parent.uuid = :from_value AND ca.is_primary = {true_literal}"
            " UNION ALL"
            " SELECT ca.child_node_id FROM alf_child_assoc ca"
            " INNER JOIN tree ON (ca.parent_node_id = tree.child_node_id)"
            f" WHERE ca.is_primary = {true_literal}"
            ")"
        )
        plan = QueryPlan(
            selects=_node_selects(),
            source="tree",
            joins=("INNER JOIN alf_node n ON (n.id = tree.child_node_id)", *joins),
            order_by=("n.id",),
            limit=max_values,
            with_clause=with_clause,
        )
    else:
        raise UnsupportedConfigurationError(
            f"Query strategy '{strategy}' is not valid. Supported values are: {', '.join(STRATEGIES)}"
        )
    plan = plan.with_filter("p.node_id IS NULL")
    return SourceQuery(strategy=strategy, dialect=dialect.name, sql=plan.render(dialect), params=params)


__all__ = [
    "ANCESTOR_ID",
    "DIALECTS",
    "NODE_ID",
    "STRATEGIES",
    "TRANSACTION_COMMIT_TIME",
    "TRANSACTION_ID",
    "Dialect",
    "QueryPlan",
    "SelectItem",
    "SourceQuery",
    "build_source_query",
    "normalize_strategy",
]
