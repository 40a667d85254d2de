"""Lead import and deduplication engine for the sales pipeline CRM."""

from . import models  # noqa: F401
from .errors import DecodeError, LeadImportError, PersistenceError
from .models import (
    ExistingLead,
    ImportResult,
    ImportTag,
    Outcome,
    ParsedLeadRecord,
    Resolution,
)
from .orchestrator import LeadImportOrchestrator, import_leads
from .phone import normalize_phone

__all__ = [
    "DecodeError",
    "LeadImportError",
    "PersistenceError",
    "ExistingLead",
    "ImportResult",
    "ImportTag",
    "Outcome",
    "ParsedLeadRecord",
    "Resolution",
    "LeadImportOrchestrator",
    "import_leads",
    "normalize_phone",
    "ingestion",
    "orchestrator",
    "store",
]
