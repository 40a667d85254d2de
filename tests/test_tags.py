import pytest

from lead_importer.errors import PersistenceError
from lead_importer.ingestion.consolidation import default_rule_sets
from lead_importer.models import ImportTag
from lead_importer.store.memory import InMemoryLeadStore
from lead_importer.tags import DEFAULT_TAG_COLOR, TagManager, build_tag_name


class CountingStore(InMemoryLeadStore):
    def __init__(self):
        super().__init__()
        self.tag_inserts = 0

    def insert_tag(self, name, color):
        self.tag_inserts += 1
        return super().insert_tag(name, color)


class RacingStore(InMemoryLeadStore):
    """Another writer creates the tag right after our lookup misses."""

    def __init__(self):
        super().__init__()
        self.lookups = 0

    def find_tag_by_name(self, name):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return super().find_tag_by_name(name)

    def insert_tag(self, name, color):
        super().insert_tag(name, "#000000")
        return super().insert_tag(name, color)


class BrokenTagStore(InMemoryLeadStore):
    def insert_tag(self, name, color):
        raise PersistenceError("tags table is read-only")


def test_build_tag_name_uses_display_name_and_label():
    rule_sets = default_rule_sets()

    assert build_tag_name(rule_sets["kommo"], "2024-05") == "Importação Kommo - 2024-05"
    assert build_tag_name(rule_sets["meta_ads"], "lote 3") == "Importação Meta Ads - lote 3"


def test_ensure_tag_creates_once():
    store = CountingStore()
    manager = TagManager(store)

    first = manager.ensure_tag("Importação Kommo - 2024-05")
    second = manager.ensure_tag("Importação Kommo - 2024-05")
    again = TagManager(store).ensure_tag("Importação Kommo - 2024-05")

    assert first == second == again
    assert first.color == DEFAULT_TAG_COLOR
    assert store.tag_inserts == 1
    assert list(store.tags) == ["Importação Kommo - 2024-05"]


def test_ensure_tag_reuses_existing_tag():
    store = CountingStore()
    store.tags["Importação Kommo - 2024-05"] = ImportTag(id="tag-77", name="Importação Kommo - 2024-05")

    tag = TagManager(store).ensure_tag("Importação Kommo - 2024-05", "#123456")

    assert tag.id == "tag-77"
    assert store.tag_inserts == 0


def test_ensure_tag_recovers_when_insert_loses_a_race():
    store = RacingStore()

    tag = TagManager(store).ensure_tag("Importação Kommo - 2024-05")

    assert tag.color == "#000000"
    assert len(store.tags) == 1


def test_ensure_tag_propagates_unrecoverable_insert_failures():
    with pytest.raises(PersistenceError):
        TagManager(BrokenTagStore()).ensure_tag("Importação Kommo - 2024-05")


def test_link_tag_is_idempotent(store):
    lead_id = store.add_lead(name="Ana", phone="5511988887777")
    manager = TagManager(store)
    tag = manager.ensure_tag("Importação Kommo - 2024-05")

    assert manager.link_tag(lead_id, tag.id) is True
    assert manager.link_tag(lead_id, tag.id) is False
    assert store.tag_links == {(lead_id, tag.id)}
