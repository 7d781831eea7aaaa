from __future__ import annotations

import abc


class ExecutionTool(abc.ABC):
    """Extracts the source dataset from the system of record."""

    @abc.abstractmethod
    def export_dataset(self, source_query, path: str) -> int:
        """Write the rows of ``source_query`` to ``path`` and return the row count."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Release connections held by the tool."""
