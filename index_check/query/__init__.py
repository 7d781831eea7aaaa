from .plan import DIALECTS, STRATEGIES, QueryPlan, SelectItem, SourceQuery, build_source_query, normalize_strategy

__all__ = [
    "DIALECTS",
    "STRATEGIES",
    "QueryPlan",
    "SelectItem",
    "SourceQuery",
    "build_source_query",
    "normalize_strategy",
]
