"""Sorted identifier sets and merge-based set algebra.

Every operand is deduplicated and sorted before it is compared, and values are
matched by whole-value equality. Matching on text containment marks ``12`` as
present when only ``123`` is indexed, so nothing here works on strings.
"""

from __future__ import annotations

from typing import Hashable, Iterable, List, Sequence, TypeVar

T = TypeVar("T", bound=Hashable)


def sorted_unique(values: Iterable[T]) -> List[T]:
    return sorted(set(values))


def is_sorted_unique(values: Sequence[T]) -> bool:
    return all(values[idx] < values[idx + 1] for idx in range(len(values) - 1))


def merge_difference(left: Sequence[T], right: Sequence[T]) -> List[T]:
    """Items of ``left`` absent from ``right``; both sorted and deduplicated."""

    result: List[T] = []
    i = j = 0
    while i < len(left):
        if j >= len(right):
            result.extend(left[i:])
            break
        if left[i] < right[j]:
            result.append(left[i])
            i += 1
        elif left[i] > right[j]:
            j += 1
        else:
            i += 1
            j += 1
    return result


def merge_union(left: Sequence[T], right: Sequence[T]) -> List[T]:
    result: List[T] = []
    i = j = 0
    while i < len(left) and j < len(right):
        if left[i] < right[j]:
            result.append(left[i])
            i += 1
        elif left[i] > right[j]:
            result.append(right[j])
            j += 1
        else:
            result.append(left[i])
            i += 1
            j += 1
    result.extend(left[i:])
    result.extend(right[j:])
    return result


def partition(values: Sequence[T], size: int) -> List[Sequence[T]]:
    if size < 1:
        raise ValueError("batch size must be positive")
    return [values[idx : idx + size] for idx in range(0, len(values), size)]


__all__ = ["is_sorted_unique", "merge_difference", "merge_union", "partition", "sorted_unique"]
