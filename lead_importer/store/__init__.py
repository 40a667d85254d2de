"""Lead store contract and adapters."""

from .base import LeadStore
from .memory import InMemoryLeadStore

__all__ = ["LeadStore", "InMemoryLeadStore"]
