"""Persistence operations the import engine requires from the lead store."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence

from ..models import ExistingLead, ImportTag


class LeadStore(Protocol):
    """Protocol implemented by store adapters.

    Adapters raise :class:`lead_importer.errors.PersistenceError` for failed
    reads and writes. Lead field names are the engine's (``revenue_band``,
    ``origin``, ...); adapters translate them to their own columns.
    """

    def find_leads_by_phones(self, phones: Sequence[str]) -> List[ExistingLead]:  # pragma: no cover - protocol
        ...

    def insert_lead(self, fields: Mapping[str, Any]) -> str:  # pragma: no cover - protocol
        ...

    def update_lead(self, lead_id: str, fields: Mapping[str, Any]) -> None:  # pragma: no cover - protocol
        ...

    def find_tag_by_name(self, name: str) -> Optional[ImportTag]:  # pragma: no cover - protocol
        ...

    def insert_tag(self, name: str, color: str) -> ImportTag:  # pragma: no cover - protocol
        ...

    def find_grouping_link(self, lead_id: str, grouping_id: str) -> bool:  # pragma: no cover - protocol
        ...

    def insert_grouping_link(
        self,
        grouping_id: str,
        lead_id: str,
        stage_id: str,
        assignee_id: Optional[str],
    ) -> None:  # pragma: no cover - protocol
        ...

    def find_tag_link(self, lead_id: str, tag_id: str) -> bool:  # pragma: no cover - protocol
        ...

    def insert_tag_link(self, lead_id: str, tag_id: str) -> None:  # pragma: no cover - protocol
        ...


__all__ = ["LeadStore"]
