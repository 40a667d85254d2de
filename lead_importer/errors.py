"""Exception hierarchy shared by the import pipeline."""
from __future__ import annotations


class LeadImportError(RuntimeError):
    """Raised when an import run is aborted before any batch is written."""


class DecodeError(LeadImportError):
    """Raised when an input file cannot be opened or has no header columns."""


class PersistenceError(RuntimeError):
    """Raised by store adapters when a single read or write fails."""


__all__ = ["LeadImportError", "DecodeError", "PersistenceError"]
