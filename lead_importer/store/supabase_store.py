"""
Supabase adapter for the lead import engine.

Tables used:
- ``leads``           lead records (``faturamento`` holds the revenue band)
- ``tags``            named tags, unique by name
- ``lead_tags``       lead ↔ tag links
- ``campanha_leads``  lead placement in a campaign (stage + ``sdr_id`` owner)
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..errors import PersistenceError
from ..models import ExistingLead, ImportTag

LOGGER = logging.getLogger(__name__)

# engine field name -> leads column
_LEAD_COLUMNS = {
    "revenue_band": "faturamento",
}
_PROJECTION = "id, name, phone, company, email, faturamento, segment, notes"


@dataclass
class DatabaseConfig:
    """Supabase connection configuration."""
    url: str
    key: str  # service key for server-side imports

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load config from environment variables."""
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_KEY")

        if not url or not key:
            raise ValueError(
                "Missing Supabase credentials. Set SUPABASE_URL and SUPABASE_KEY environment variables."
            )

        return cls(url=url, key=key)


class SupabaseLeadStore:
    """
    Lead store backed by a Supabase project.

    Every PostgREST failure is re-raised as PersistenceError so the import
    engine can account for it per record.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None, client: Optional[Client] = None):
        """
        Initialize the store.

        Args:
            config: Database configuration. If None, loads from environment.
            client: Pre-built client (takes precedence over config).
        """
        if client is None:
            if config is None:
                config = DatabaseConfig.from_env()
            client = create_client(config.url, config.key)

        self.client = client

    # ==========================================
    # LEAD OPERATIONS
    # ==========================================

    def find_leads_by_phones(self, phones: Sequence[str]) -> List[ExistingLead]:
        if not phones:
            return []
        query = self.client.table("leads").select(_PROJECTION).in_("phone", list(phones))
        rows = self._execute(query, "look up leads by phone")
        return [
            ExistingLead(
                id=str(row["id"]),
                name=row.get("name") or "",
                phone=row.get("phone"),
                company=row.get("company"),
                email=row.get("email"),
                revenue_band=row.get("faturamento"),
                segment=row.get("segment"),
                notes=row.get("notes"),
            )
            for row in rows
        ]

    def insert_lead(self, fields: Mapping[str, Any]) -> str:
        query = self.client.table("leads").insert(_to_columns(fields))
        rows = self._execute(query, "insert lead")
        if not rows:
            raise PersistenceError("Lead insert returned no row")
        return str(rows[0]["id"])

    def update_lead(self, lead_id: str, fields: Mapping[str, Any]) -> None:
        query = self.client.table("leads").update(_to_columns(fields)).eq("id", lead_id)
        self._execute(query, f"update lead {lead_id}")

    # ==========================================
    # TAG OPERATIONS
    # ==========================================

    def find_tag_by_name(self, name: str) -> Optional[ImportTag]:
        query = self.client.table("tags").select("id, name, color").eq("name", name).limit(1)
        rows = self._execute(query, f"look up tag '{name}'")
        if not rows:
            return None
        row = rows[0]
        return ImportTag(id=str(row["id"]), name=row["name"], color=row.get("color"))

    def insert_tag(self, name: str, color: str) -> ImportTag:
        query = self.client.table("tags").insert({"name": name, "color": color})
        rows = self._execute(query, f"create tag '{name}'")
        if not rows:
            raise PersistenceError(f"Tag insert for '{name}' returned no row")
        return ImportTag(id=str(rows[0]["id"]), name=name, color=color)

    def find_tag_link(self, lead_id: str, tag_id: str) -> bool:
        query = self.client.table("lead_tags").select("id").eq("lead_id", lead_id).eq("tag_id", tag_id).limit(1)
        return bool(self._execute(query, f"look up tag link for lead {lead_id}"))

    def insert_tag_link(self, lead_id: str, tag_id: str) -> None:
        query = self.client.table("lead_tags").insert({"lead_id": lead_id, "tag_id": tag_id})
        self._execute(query, f"tag lead {lead_id}")

    # ==========================================
    # CAMPAIGN OPERATIONS
    # ==========================================

    def find_grouping_link(self, lead_id: str, grouping_id: str) -> bool:
        query = (
            self.client.table("campanha_leads")
            .select("id")
            .eq("campanha_id", grouping_id)
            .eq("lead_id", lead_id)
            .limit(1)
        )
        return bool(self._execute(query, f"look up campaign link for lead {lead_id}"))

    def insert_grouping_link(
        self,
        grouping_id: str,
        lead_id: str,
        stage_id: str,
        assignee_id: Optional[str],
    ) -> None:
        data = {
            "campanha_id": grouping_id,
            "lead_id": lead_id,
            "stage_id": stage_id,
            "sdr_id": assignee_id,
        }
        self._execute(self.client.table("campanha_leads").insert(data), f"add lead {lead_id} to campaign")

    # ==========================================
    # HELPERS
    # ==========================================

    @staticmethod
    def _execute(query: Any, action: str) -> List[Dict[str, Any]]:
        try:
            result = query.execute()
        except APIError as exc:
            LOGGER.debug("Supabase call failed (%s): %s", action, exc)
            raise PersistenceError(f"Failed to {action}: {exc}") from exc
        return result.data or []


def _to_columns(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {_LEAD_COLUMNS.get(key, key): value for key, value in fields.items()}


__all__ = ["DatabaseConfig", "SupabaseLeadStore"]
