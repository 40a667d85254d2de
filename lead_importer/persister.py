"""Batched writes of resolved leads, with optional thread-pool fan-out per batch."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .dedupe import compute_merge_update
from .distribution import DistributionAssigner
from .models import ImportResult, ImportTag, Outcome, Resolution
from .store.base import LeadStore
from .tags import TagManager

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

IMPORTED = "imported"
UPDATED = "updated"
DUPLICATES = "duplicates"
INVALID = "invalid"

RecordOutcome = Tuple[str, Optional[Dict[str, Any]]]


class BatchPersister:
    """Writes resolutions batch by batch and tallies what happened to each one.

    Each record is its own unit of work: a failed write is logged and counted
    as invalid without affecting the rest of the run. The next batch is only
    submitted once every record of the current one has finished.
    """

    def __init__(
        self,
        store: LeadStore,
        tags: TagManager,
        assigner: DistributionAssigner,
        *,
        grouping_id: str,
        stage_id: str,
        tag: ImportTag,
        origin: str = "outro",
        batch_size: int = 25,
        max_workers: int = 1,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._store = store
        self._tags = tags
        self._assigner = assigner
        self._grouping_id = grouping_id
        self._stage_id = stage_id
        self._tag = tag
        self._origin = origin
        self._batch_size = batch_size
        self._max_workers = max(1, max_workers)

    def persist(
        self,
        resolutions: Sequence[Resolution],
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ImportResult:
        result = ImportResult()
        total = len(resolutions)
        processed = 0
        last_percent = 0

        executor = ThreadPoolExecutor(max_workers=self._max_workers) if self._max_workers > 1 else None
        try:
            for start in range(0, total, self._batch_size):
                if cancel_event is not None and cancel_event.is_set():
                    LOGGER.warning("Import cancelled after %s of %s leads", processed, total)
                    result.cancelled = True
                    break

                batch = resolutions[start : start + self._batch_size]
                for key, error in self._run_batch(batch, executor):
                    setattr(result, key, getattr(result, key) + 1)
                    if error is not None:
                        result.errors.append(error)
                processed += len(batch)

                percent = 100 if processed == total else processed * 100 // total
                last_percent = max(last_percent, percent)
                LOGGER.debug("Persisted %s/%s leads (%s%%)", processed, total, last_percent)
                if progress is not None:
                    progress(last_percent)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        result.total = processed
        return result

    def _run_batch(
        self,
        batch: Sequence[Resolution],
        executor: Optional[ThreadPoolExecutor],
    ) -> List[RecordOutcome]:
        if executor is None:
            return [self._execute_record(resolution) for resolution in batch]
        futures = [executor.submit(self._execute_record, resolution) for resolution in batch]
        return [future.result() for future in futures]

    def _execute_record(self, resolution: Resolution) -> RecordOutcome:
        record = resolution.record
        try:
            if resolution.outcome is Outcome.SKIP:
                return DUPLICATES, None
            if resolution.outcome is Outcome.NEW:
                return self._insert_new(resolution), None
            return self._merge_existing(resolution), None
        except Exception as exc:
            LOGGER.exception("Failed to persist lead %s (row %s)", record.name, record.row_number)
            return INVALID, {
                "row": record.row_number,
                "name": record.name,
                "phone": record.canonical_phone,
                "outcome": resolution.outcome.value,
                "error": str(exc),
            }

    def _insert_new(self, resolution: Resolution) -> str:
        fields = resolution.record.insert_fields()
        fields["origin"] = self._origin
        lead_id = self._store.insert_lead(fields)
        assignee_id = self._assigner.assign()
        self._store.insert_grouping_link(self._grouping_id, lead_id, self._stage_id, assignee_id)
        self._assigner.confirm(assignee_id)
        self._tags.link_tag(lead_id, self._tag.id)
        LOGGER.debug("Imported %s as %s (assignee %s)", resolution.record.name, lead_id, assignee_id)
        return IMPORTED

    def _merge_existing(self, resolution: Resolution) -> str:
        existing = resolution.existing
        if existing is None:
            raise ValueError("MERGE resolution without an existing lead")

        update = compute_merge_update(resolution.record, existing)
        if update:
            self._store.update_lead(existing.id, update)

        # leads already in the campaign keep their current owner
        if not self._store.find_grouping_link(existing.id, self._grouping_id):
            assignee_id = self._assigner.assign()
            self._store.insert_grouping_link(self._grouping_id, existing.id, self._stage_id, assignee_id)
            self._assigner.confirm(assignee_id)

        self._tags.link_tag(existing.id, self._tag.id)
        LOGGER.debug("Merged %s into %s (%s fields updated)", resolution.record.name, existing.id, len(update))
        return UPDATED if update else DUPLICATES


__all__ = ["BatchPersister", "ProgressCallback"]
