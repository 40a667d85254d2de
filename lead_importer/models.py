"""Data models shared by the decoder, resolver, persister and orchestrator."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .phone import normalize_phone

RawRow = Dict[str, str]


# --- Parsed Input Models ---

@dataclass(frozen=True)
class ParsedLeadRecord:
    """One consolidated lead taken from an import file."""

    name: str
    company: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    revenue_band: Optional[str] = None
    segment: Optional[str] = None
    notes: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_content: Optional[str] = None
    utm_term: Optional[str] = None
    row_number: Optional[int] = field(default=None, compare=False)

    @property
    def canonical_phone(self) -> Optional[str]:
        """Normalised phone, or ``None`` when the record carries no usable digits."""

        return normalize_phone(self.phone) or None

    def insert_fields(self) -> Dict[str, Any]:
        """Column values written when the record becomes a new lead."""

        return {
            "name": self.name,
            "company": self.company,
            "phone": self.canonical_phone,
            "email": self.email,
            "revenue_band": self.revenue_band,
            "segment": self.segment,
            "notes": self.notes,
            "utm_campaign": self.utm_campaign,
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_content": self.utm_content,
            "utm_term": self.utm_term,
        }


# --- Store Projections ---

@dataclass
class ExistingLead:
    """Minimal projection of a lead already present in the store."""

    id: str
    name: str
    phone: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    revenue_band: Optional[str] = None
    segment: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ImportTag:
    """Tag attached to every lead touched by an import run."""

    id: str
    name: str
    color: Optional[str] = None


ExistingLeadIndex = Dict[str, ExistingLead]


# --- Resolution ---

class Outcome(enum.Enum):
    NEW = "new"
    MERGE = "merge"
    SKIP = "skip"


@dataclass(frozen=True)
class Resolution:
    """Classification of a record against the existing leads and the current run."""

    outcome: Outcome
    record: ParsedLeadRecord
    existing: Optional[ExistingLead] = None


# --- Run Result ---

@dataclass
class ImportResult:
    """Tally returned by a completed (or cancelled) import run."""

    total: int = 0
    imported: int = 0
    updated: int = 0
    duplicates: int = 0
    invalid: int = 0
    distribution: Optional[Dict[str, int]] = None
    tag: Optional[ImportTag] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def accounted(self) -> int:
        return self.imported + self.updated + self.duplicates + self.invalid

    def summary(self) -> str:
        text = (
            f"Import complete: {self.total} leads, {self.imported} imported, "
            f"{self.updated} updated, {self.duplicates} duplicates, "
            f"{self.invalid} invalid"
        )
        if self.cancelled:
            text += " (cancelled)"
        return text


__all__ = [
    "RawRow",
    "ParsedLeadRecord",
    "ExistingLead",
    "ExistingLeadIndex",
    "ImportTag",
    "Outcome",
    "Resolution",
    "ImportResult",
]
