"""
Index consistency tooling.

Shared building blocks for the reconciliation subsystem in :mod:`recon`:
configuration, structured logging, source dataset extraction and the HTTP
endpoints used to query and repair a search index.
"""

__version__ = "0.3.0"
