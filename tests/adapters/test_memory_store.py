from __future__ import annotations

import pytest

from recordsync.adapters.memory import InMemoryRecordStore
from recordsync.domain.errors import StoreUnavailableError
from recordsync.domain.model import DomainRecord
from recordsync.domain.ports.persistence import AttributeIn, RecordStore, WriteMode
from tests.support.kinds import SCHEMA, id_factory


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(schema=SCHEMA, id_factory=id_factory("acc"))


def test_memory_store_satisfies_protocol(store: InMemoryRecordStore) -> None:
    assert isinstance(store, RecordStore)


def test_find_filters_by_attribute_values(store: InMemoryRecordStore) -> None:
    store.seed(DomainRecord(kind="Account", attributes={"Name": "Acme"}))
    store.seed(DomainRecord(kind="Account", attributes={"Name": "Globex"}))
    store.seed(DomainRecord(kind="Account", attributes={"Name": 7}))
    store.seed(DomainRecord(kind="Account", attributes={"Industry": "Retail"}))
    store.seed(DomainRecord(kind="Contact", attributes={"Name": "Acme"}))

    found = store.find("Account", AttributeIn("Name", frozenset({"Acme", "7"})))

    assert [record.attributes["Name"] for record in found] == ["Acme", 7]
    assert len(store.find("Account")) == 4


def test_find_returns_detached_copies(store: InMemoryRecordStore) -> None:
    record_id = store.seed(DomainRecord(kind="Account", attributes={"Name": "Acme"}))

    store.find("Account")[0].attributes["Name"] = "Changed"

    stored = store.get("Account", record_id)
    assert stored is not None
    assert stored.attributes["Name"] == "Acme"


def test_write_batch_reports_per_record(store: InMemoryRecordStore) -> None:
    existing = store.seed(DomainRecord(kind="Account", attributes={"Name": "Acme"}))
    records = [
        DomainRecord(kind="Account", attributes={"Name": "Globex"}),
        DomainRecord(kind="Account", attributes={"Industry": "Energy"}),
        DomainRecord(
            kind="Account", attributes={"Name": "Acme", "Industry": "Retail"}, id=existing
        ),
        DomainRecord(kind="Account", attributes={"Name": "Ghost"}, id="acc-9999"),
        DomainRecord(kind="Contact", attributes={"LastName": "Doe"}),
    ]

    results = store.write_batch("Account", records, WriteMode.UPSERT)

    assert [result.ok for result in results] == [True, False, True, False, False]
    assert results[0].id == "acc-0002"
    assert results[2].id == existing
    assert results[1].error == "required attributes missing: Name"
    assert "acc-9999" in (results[3].error or "")
    assert store.count("Account") == 2
    updated = store.get("Account", existing)
    assert updated is not None
    assert updated.attributes["Industry"] == "Retail"


def test_insert_refuses_records_with_ids(store: InMemoryRecordStore) -> None:
    existing = store.seed(DomainRecord(kind="Account", attributes={"Name": "Acme"}))

    (result,) = store.write_batch(
        "Account",
        [DomainRecord(kind="Account", attributes={"Name": "Acme"}, id=existing)],
        WriteMode.INSERT,
    )

    assert not result.ok


def test_delete_removes_by_id(store: InMemoryRecordStore) -> None:
    existing = store.seed(DomainRecord(kind="Account", attributes={"Name": "Acme"}))

    results = store.write_batch(
        "Account",
        [DomainRecord(kind="Account", id=existing), DomainRecord(kind="Account", id=existing)],
        WriteMode.DELETE,
    )

    assert [result.ok for result in results] == [True, False]
    assert store.count("Account") == 0


def test_unavailable_store_raises(store: InMemoryRecordStore) -> None:
    store.available = False

    with pytest.raises(StoreUnavailableError):
        store.find("Account")
    with pytest.raises(StoreUnavailableError):
        store.write_batch("Account", [], WriteMode.INSERT)
