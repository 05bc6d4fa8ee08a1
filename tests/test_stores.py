"""Tests for the in-memory and SQLite stores and the local template cache."""

import asyncio
import sqlite3

import pytest

from template_studio.model.template import TemplateData, create_element
from template_studio.rates.rate import RateItem
from template_studio.store.base import UNTITLED_TEMPLATE_NAME
from template_studio.store.local_cache import LocalTemplateCache
from template_studio.store.memory import InMemoryStore
from template_studio.store.sqlite_store import SqliteStore
from template_studio.utils.exceptions import PersistenceError


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return SqliteStore(tmp_path / "db" / "studio.db")


def _template(name="Standard"):
    return TemplateData(
        name=name,
        metadata={"currency": "QAR"},
        elements=[create_element("text", "el_title")],
    )


# =============================================================================
# Templates
# =============================================================================

def test_save_inserts_then_updates(store):
    saved = asyncio.run(store.save_template(_template()))

    assert saved.id is not None
    assert saved.metadata == {"currency": "QAR"}
    assert saved.element("el_title") is not None

    updated = asyncio.run(store.save_template(saved.renamed("Renamed")))
    templates = asyncio.run(store.list_templates())

    assert updated.id == saved.id
    assert [(t.id, t.name) for t in templates] == [(saved.id, "Renamed")]


def test_blank_name_saved_as_untitled(store):
    saved = asyncio.run(store.save_template(TemplateData(name="")))
    assert saved.name == UNTITLED_TEMPLATE_NAME


def test_saving_unknown_id_fails(store):
    with pytest.raises(PersistenceError):
        asyncio.run(store.save_template(TemplateData(name="Ghost", id="missing")))


def test_delete_template(store):
    first = asyncio.run(store.save_template(_template("First")))
    second = asyncio.run(store.save_template(_template("Second")))

    asyncio.run(store.delete_template(first.id))

    assert [t.id for t in asyncio.run(store.list_templates())] == [second.id]


def test_memory_store_lists_most_recent_first():
    store = InMemoryStore()
    first = asyncio.run(store.save_template(_template("First")))
    second = asyncio.run(store.save_template(_template("Second")))
    asyncio.run(store.save_template(first.renamed("First again")))

    names = [t.name for t in asyncio.run(store.list_templates())]
    assert names == ["First again", "Second"]
    assert second.id != first.id


def test_unavailable_store_raises():
    store = InMemoryStore(available=False)

    with pytest.raises(PersistenceError):
        asyncio.run(store.list_templates())
    with pytest.raises(PersistenceError):
        asyncio.run(store.list_rates())


# =============================================================================
# Rates
# =============================================================================

def test_rates_listed_by_reference(store):
    asyncio.run(store.insert_rates([
        RateItem("REF-B", "Welder", "Day", 300),
        RateItem("REF-A", "Inspector", "Day", 400, ot_rate=60, currency="QAR"),
    ]))

    rates = asyncio.run(store.list_rates())

    assert [r.reference_no for r in rates] == ["REF-A", "REF-B"]
    assert all(r.id for r in rates)
    assert (rates[0].ot_rate, rates[0].currency) == (60.0, "QAR")


def test_upsert_keeps_id_of_existing_reference(store):
    (original,) = asyncio.run(store.insert_rates([RateItem("REF-A", "Inspector", "Day", 400)]))

    stored = asyncio.run(store.upsert_rates([
        RateItem("REF-A", "Inspector", "Day", 450),
        RateItem("REF-C", "Helper", "Hour", 20),
    ]))
    rates = asyncio.run(store.list_rates())

    assert stored[0].id == original.id
    assert stored[0].rate == 450.0
    assert [r.reference_no for r in rates] == ["REF-A", "REF-C"]


def test_update_rate(store):
    (rate,) = asyncio.run(store.insert_rates([RateItem("REF-A", "Inspector", "Day", 400)]))

    asyncio.run(store.update_rate(RateItem("REF-A", "Lead Inspector", "Day", 500, id=rate.id)))

    (updated,) = asyncio.run(store.list_rates())
    assert (updated.description, updated.rate) == ("Lead Inspector", 500.0)


def test_update_rate_requires_known_id(store):
    with pytest.raises(PersistenceError):
        asyncio.run(store.update_rate(RateItem("REF-A")))
    with pytest.raises(PersistenceError):
        asyncio.run(store.update_rate(RateItem("REF-A", id="missing")))


def test_delete_rates(store):
    inserted = asyncio.run(store.insert_rates([RateItem("REF-A"), RateItem("REF-B"), RateItem("REF-C")]))

    asyncio.run(store.delete_rate(inserted[0].id))
    assert len(asyncio.run(store.list_rates())) == 2

    assert asyncio.run(store.delete_all_rates()) == 2
    assert asyncio.run(store.list_rates()) == []


def test_sqlite_store_persists_across_instances(tmp_path):
    path = tmp_path / "studio.db"
    saved = asyncio.run(SqliteStore(path).save_template(_template()))

    templates = asyncio.run(SqliteStore(path).list_templates())

    assert [t.id for t in templates] == [saved.id]
    assert templates[0].elements == saved.elements


def test_sqlite_duplicate_reference_insert_fails(tmp_path):
    store = SqliteStore(tmp_path / "studio.db")
    asyncio.run(store.insert_rates([RateItem("REF-A")]))

    with pytest.raises(PersistenceError):
        asyncio.run(store.insert_rates([RateItem("REF-A")]))


def test_sqlite_skips_unreadable_template_rows(tmp_path):
    path = tmp_path / "studio.db"
    store = SqliteStore(path)
    saved = asyncio.run(store.save_template(_template()))
    conn = sqlite3.connect(path)
    conn.executemany(
        "INSERT INTO templates (id, name, data, updated_at) VALUES (?, ?, ?, ?)",
        [
            ("broken", "bad", "{not json", "9999"),
            ("circle", "bad", '{"elements": [{"id": "x", "type": "circle"}]}', "9999"),
            ("listed", "bad", "[1, 2]", "9999"),
        ],
    )
    conn.commit()
    conn.close()

    assert [t.id for t in asyncio.run(store.list_templates())] == [saved.id]


# =============================================================================
# Local cache
# =============================================================================

def test_cache_round_trip(tmp_path):
    cache = LocalTemplateCache(tmp_path / "nested" / "template.json")
    template = _template()

    assert cache.load() is None
    cache.store(template)

    assert cache.load() == template


def test_corrupt_cache_is_ignored(tmp_path):
    path = tmp_path / "template.json"
    path.write_text("{not json", encoding="utf-8")

    assert LocalTemplateCache(path).load() is None


def test_cache_with_invalid_element_is_ignored(tmp_path):
    path = tmp_path / "template.json"
    path.write_text('{"name": "T", "elements": [{"id": "x", "type": "circle"}]}', encoding="utf-8")

    assert LocalTemplateCache(path).load() is None


def test_cache_clear(tmp_path):
    cache = LocalTemplateCache(tmp_path / "template.json")
    cache.store(_template())

    cache.clear()
    cache.clear()

    assert cache.load() is None


@pytest.mark.parametrize("content", [
    "[]",
    "42",
    '{"name": "T", "elements": ["el_title"]}',
])
def test_cache_that_is_not_a_template_is_ignored(tmp_path, content):
    path = tmp_path / "template.json"
    path.write_text(content, encoding="utf-8")

    assert LocalTemplateCache(path).load() is None
