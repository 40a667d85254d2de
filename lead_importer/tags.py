"""Get-or-create handling of the per-run import tag and its lead links."""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict

from .errors import PersistenceError
from .models import ImportTag

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .ingestion.consolidation import RuleSet
    from .store.base import LeadStore

LOGGER = logging.getLogger(__name__)

DEFAULT_TAG_COLOR = "#f59e0b"


def build_tag_name(rule_set: "RuleSet", import_label: str) -> str:
    return f"Importação {rule_set.display_name} - {import_label}"


class TagManager:
    """Wraps the store's tag operations so both calls are idempotent."""

    def __init__(self, store: "LeadStore") -> None:
        self._store = store
        self._cache: Dict[str, ImportTag] = {}
        self._lock = threading.Lock()

    def ensure_tag(self, name: str, color: str = DEFAULT_TAG_COLOR) -> ImportTag:
        """Return the tag called ``name``, creating it when it does not exist yet."""

        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached

            tag = self._store.find_tag_by_name(name)
            if tag is None:
                try:
                    tag = self._store.insert_tag(name, color)
                    LOGGER.info("Created import tag '%s'", name)
                except PersistenceError:
                    # another run may have created it between the lookup and the insert
                    tag = self._store.find_tag_by_name(name)
                    if tag is None:
                        raise
            self._cache[name] = tag
            return tag

    def link_tag(self, lead_id: str, tag_id: str) -> bool:
        """Attach ``tag_id`` to ``lead_id`` unless already linked. Returns ``True`` on insert."""

        if self._store.find_tag_link(lead_id, tag_id):
            return False
        self._store.insert_tag_link(lead_id, tag_id)
        return True


__all__ = ["DEFAULT_TAG_COLOR", "TagManager", "build_tag_name"]
