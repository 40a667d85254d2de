"""Duplicate detection against existing leads and rows already seen in the run."""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set

from .models import ExistingLead, ExistingLeadIndex, Outcome, ParsedLeadRecord, Resolution

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .store.base import LeadStore

LOGGER = logging.getLogger(__name__)

FILL_IF_EMPTY_FIELDS = ("company", "email", "revenue_band", "segment")
NOTES_DIVIDER = "\n\n[Importado] "


def build_existing_index(
    store: "LeadStore",
    phones: Iterable[Optional[str]],
    *,
    chunk_size: int = 200,
) -> ExistingLeadIndex:
    """Fetch the existing leads matching ``phones`` in chunks and key them by phone."""

    unique: List[str] = []
    seen: Set[str] = set()
    for phone in phones:
        if phone and phone not in seen:
            seen.add(phone)
            unique.append(phone)

    index: ExistingLeadIndex = {}
    for start in range(0, len(unique), chunk_size):
        chunk = unique[start : start + chunk_size]
        for lead in store.find_leads_by_phones(chunk):
            if lead.phone and lead.phone not in index:
                index[lead.phone] = lead
    LOGGER.info("Matched %s of %s phones against existing leads", len(index), len(unique))
    return index


class DuplicateResolver:
    """Classifies records as NEW, MERGE or SKIP.

    The processed-phone set is shared by every caller of :meth:`resolve`, so the
    check and the insert happen under one lock.
    """

    def __init__(self, index: ExistingLeadIndex) -> None:
        self._index = index
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    def resolve(self, record: ParsedLeadRecord) -> Resolution:
        phone = record.canonical_phone
        if not phone:
            return Resolution(Outcome.NEW, record)

        with self._lock:
            if phone in self._seen:
                LOGGER.debug("Phone %s already handled in this run; skipping %s", phone, record.name)
                return Resolution(Outcome.SKIP, record)
            self._seen.add(phone)

        existing = self._index.get(phone)
        if existing is None:
            return Resolution(Outcome.NEW, record)
        return Resolution(Outcome.MERGE, record, existing)

    @property
    def processed_phones(self) -> Set[str]:
        with self._lock:
            return set(self._seen)


def compute_merge_update(record: ParsedLeadRecord, existing: ExistingLead) -> Dict[str, str]:
    """Return the fields to write on ``existing``; stored values are never overwritten."""

    update: Dict[str, str] = {}
    for field_name in FILL_IF_EMPTY_FIELDS:
        new_value = getattr(record, field_name)
        current = getattr(existing, field_name)
        if new_value and not (current or "").strip():
            update[field_name] = new_value

    if record.notes:
        current_notes = (existing.notes or "").strip()
        if not current_notes:
            update["notes"] = record.notes
        elif record.notes not in current_notes:
            update["notes"] = f"{current_notes}{NOTES_DIVIDER}{record.notes}"
    return update


__all__ = [
    "FILL_IF_EMPTY_FIELDS",
    "NOTES_DIVIDER",
    "DuplicateResolver",
    "build_existing_index",
    "compute_merge_update",
]
