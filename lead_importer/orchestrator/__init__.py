"""Run-level coordination of lead imports."""

from .service import LeadImportOrchestrator, import_leads

__all__ = ["LeadImportOrchestrator", "import_leads"]
