from __future__ import annotations

from typing import Iterable, List

from .sets import merge_difference, merge_union, sorted_unique


def merge_error_nodes(missing_nodes: Iterable[int], error_nodes: Iterable[int]) -> List[int]:
    """Missing nodes plus every error-flagged node not already listed."""

    missing = sorted_unique(missing_nodes)
    extra = merge_difference(sorted_unique(error_nodes), missing)
    return merge_union(missing, extra)


def purge_candidates(indexed_nodes: Iterable[int], canonical_nodes: Iterable[int]) -> List[int]:
    """Indexed nodes under the scanned path that no longer exist in the source."""

    return merge_difference(sorted_unique(indexed_nodes), sorted_unique(canonical_nodes))


__all__ = ["merge_error_nodes", "purge_candidates"]
