"""
Reconciliation engine comparing a repository dataset with its search index.

The engine derives canonical identifier sets from the dataset, verifies them
against the index in batches, folds in the documents the index flags as
errors, and replays reindex or purge requests on every configured index
instance.
"""

from .cli import run_cli

__all__ = ["run_cli"]
