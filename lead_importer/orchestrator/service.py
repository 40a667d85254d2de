"""Import orchestrator that coordinates decoding, deduplication and persistence."""
from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Union

from ..config import ImportSettings
from ..dedupe import DuplicateResolver, build_existing_index
from ..distribution import DistributionAssigner, DistributionMode
from ..errors import LeadImportError
from ..ingestion.consolidation import FieldConsolidator, RuleSet, default_rule_sets
from ..ingestion.decoder import iter_rows
from ..models import ImportResult, ParsedLeadRecord
from ..persister import BatchPersister, ProgressCallback
from ..store.base import LeadStore
from ..tags import TagManager, build_tag_name

LOGGER = logging.getLogger(__name__)

Source = Union[str, Path, IO[Any]]


class LeadImportOrchestrator:
    """Runs one import: decode → consolidate → resolve → persist → tally.

    Anything that goes wrong before the first batch (unreadable file, no
    eligible rows, tag or lookup failures) raises :class:`LeadImportError` and
    nothing is returned. Once batches start, failures are per record.
    """

    def __init__(
        self,
        store: LeadStore,
        *,
        rule_sets: Optional[Dict[str, RuleSet]] = None,
        settings: Optional[ImportSettings] = None,
    ) -> None:
        self._store = store
        self._rule_sets = dict(rule_sets or default_rule_sets())
        self._settings = settings or ImportSettings()

    @property
    def source_kinds(self) -> List[str]:
        return sorted(self._rule_sets)

    def parse(
        self,
        source: Source,
        *,
        source_kind: str = "kommo",
        file_kind: Optional[str] = None,
    ) -> List[ParsedLeadRecord]:
        """Decode ``source`` and return the rows that qualify as candidate leads."""

        consolidator = FieldConsolidator(self._rule_set(source_kind))
        records: List[ParsedLeadRecord] = []
        dropped = 0
        # row 1 is the header
        for row_number, row in enumerate(iter_rows(source, file_kind), start=2):
            record = consolidator.consolidate(row, row_number=row_number)
            if record is None:
                dropped += 1
                continue
            records.append(record)
        LOGGER.info("Parsed %s leads (%s rows dropped without name or contact)", len(records), dropped)
        return records

    def run(
        self,
        source: Source,
        *,
        grouping_id: str,
        stage_id: str,
        fixed_assignee_id: Optional[str] = None,
        auto_distribute: bool = False,
        member_ids: Optional[Sequence[str]] = None,
        source_kind: str = "kommo",
        import_label: Optional[str] = None,
        file_kind: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ImportResult:
        rule_set = self._rule_set(source_kind)
        label = import_label or date.today().strftime("%Y-%m")

        try:
            assigner = DistributionAssigner.from_options(auto_distribute, member_ids, fixed_assignee_id)
        except ValueError as exc:
            raise LeadImportError(str(exc)) from exc

        try:
            records = self.parse(source, source_kind=source_kind, file_kind=file_kind)
        except LeadImportError:
            raise
        except Exception as exc:
            LOGGER.exception("Unable to read %s", source)
            raise LeadImportError(f"Unable to read import file: {exc}") from exc
        if not records:
            raise LeadImportError("No valid leads found in the file")

        try:
            index = build_existing_index(
                self._store,
                (record.canonical_phone for record in records),
                chunk_size=self._settings.lookup_chunk_size,
            )
            tags = TagManager(self._store)
            tag = tags.ensure_tag(build_tag_name(rule_set, label), self._settings.tag_color)
        except Exception as exc:
            LOGGER.exception("Import aborted before the first batch")
            raise LeadImportError(f"Import aborted: {exc}") from exc

        resolver = DuplicateResolver(index)
        resolutions = [resolver.resolve(record) for record in records]

        persister = BatchPersister(
            self._store,
            tags,
            assigner,
            grouping_id=grouping_id,
            stage_id=stage_id,
            tag=tag,
            origin=rule_set.origin,
            batch_size=self._settings.batch_size,
            max_workers=self._settings.max_workers,
        )
        result = persister.persist(resolutions, progress=progress, cancel_event=cancel_event)
        result.tag = tag
        if assigner.mode is DistributionMode.AUTO:
            result.distribution = assigner.counts()

        LOGGER.info("%s", result.summary())
        return result

    def _rule_set(self, source_kind: str) -> RuleSet:
        try:
            return self._rule_sets[source_kind]
        except KeyError:
            raise LeadImportError(
                f"Unknown source kind '{source_kind}'. Known kinds: {', '.join(self.source_kinds)}"
            ) from None


def import_leads(
    store: LeadStore,
    source: Source,
    *,
    grouping_id: str,
    stage_id: str,
    fixed_assignee_id: Optional[str] = None,
    auto_distribute: bool = False,
    member_ids: Optional[Sequence[str]] = None,
    progress: Optional[ProgressCallback] = None,
    **options: Any,
) -> ImportResult:
    """Convenience wrapper running a single import with default settings."""

    orchestrator = LeadImportOrchestrator(
        store,
        rule_sets=options.pop("rule_sets", None),
        settings=options.pop("settings", None),
    )
    return orchestrator.run(
        source,
        grouping_id=grouping_id,
        stage_id=stage_id,
        fixed_assignee_id=fixed_assignee_id,
        auto_distribute=auto_distribute,
        member_ids=member_ids,
        progress=progress,
        **options,
    )


__all__ = ["LeadImportOrchestrator", "import_leads"]
