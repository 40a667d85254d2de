"""Dictionary backed lead store used for dry runs and tests."""
from __future__ import annotations

import itertools
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..errors import PersistenceError
from ..models import ExistingLead, ImportTag

_PROJECTION_FIELDS = ("name", "phone", "company", "email", "revenue_band", "segment", "notes")


class InMemoryLeadStore:
    """Keeps leads, tags and links in process memory. Tag names are unique."""

    def __init__(self) -> None:
        self.leads: Dict[str, Dict[str, Any]] = {}
        self.tags: Dict[str, ImportTag] = {}
        self.tag_links: Set[Tuple[str, str]] = set()
        self.grouping_links: Dict[Tuple[str, str], Dict[str, Optional[str]]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # ------------------------------------------------------------------
    # Leads
    # ------------------------------------------------------------------
    def add_lead(self, **fields: Any) -> str:
        """Seed an existing lead; returns its id."""

        return self.insert_lead(fields)

    def find_leads_by_phones(self, phones: Sequence[str]) -> List[ExistingLead]:
        wanted = set(phones)
        with self._lock:
            return [
                ExistingLead(id=lead_id, **{key: lead.get(key) for key in _PROJECTION_FIELDS})
                for lead_id, lead in self.leads.items()
                if lead.get("phone") in wanted
            ]

    def insert_lead(self, fields: Mapping[str, Any]) -> str:
        if not fields.get("name"):
            raise PersistenceError("Lead name is required")
        with self._lock:
            lead_id = self._next_id("lead")
            self.leads[lead_id] = dict(fields)
        return lead_id

    def update_lead(self, lead_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            if lead_id not in self.leads:
                raise PersistenceError(f"Lead '{lead_id}' does not exist")
            self.leads[lead_id].update(fields)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    def find_tag_by_name(self, name: str) -> Optional[ImportTag]:
        with self._lock:
            return self.tags.get(name)

    def insert_tag(self, name: str, color: str) -> ImportTag:
        with self._lock:
            if name in self.tags:
                raise PersistenceError(f"Tag '{name}' already exists")
            tag = ImportTag(id=self._next_id("tag"), name=name, color=color)
            self.tags[name] = tag
        return tag

    def find_tag_link(self, lead_id: str, tag_id: str) -> bool:
        with self._lock:
            return (lead_id, tag_id) in self.tag_links

    def insert_tag_link(self, lead_id: str, tag_id: str) -> None:
        with self._lock:
            if (lead_id, tag_id) in self.tag_links:
                raise PersistenceError(f"Lead '{lead_id}' is already tagged with '{tag_id}'")
            self.tag_links.add((lead_id, tag_id))

    # ------------------------------------------------------------------
    # Grouping (campaign) links
    # ------------------------------------------------------------------
    def find_grouping_link(self, lead_id: str, grouping_id: str) -> bool:
        with self._lock:
            return (grouping_id, lead_id) in self.grouping_links

    def insert_grouping_link(
        self,
        grouping_id: str,
        lead_id: str,
        stage_id: str,
        assignee_id: Optional[str],
    ) -> None:
        with self._lock:
            if lead_id not in self.leads:
                raise PersistenceError(f"Lead '{lead_id}' does not exist")
            self.grouping_links[(grouping_id, lead_id)] = {"stage_id": stage_id, "assignee_id": assignee_id}


__all__ = ["InMemoryLeadStore"]
