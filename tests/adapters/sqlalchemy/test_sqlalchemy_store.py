from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.orm import sessionmaker

from recordsync.adapters.sqlalchemy import SqlAlchemyRecordStore, record_table
from recordsync.domain.errors import StoreUnavailableError
from recordsync.domain.model import DomainRecord
from recordsync.domain.ports.persistence import AttributeIn, RecordStore, WriteMode
from recordsync.domain.reconciliation import ReconciliationEngine
from tests.support.kinds import SCHEMA, crm_registry

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine


def _account(name: str, **attributes: object) -> DomainRecord:
    return DomainRecord(kind="Account", attributes={"Name": name, **attributes})


def _row_count(engine: Engine, kind: str) -> int:
    with engine.connect() as connection:
        stmt = select(func.count()).select_from(record_table).where(record_table.c.kind == kind)
        return connection.execute(stmt).scalar_one()


def test_migrations_create_record_table(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    columns = {column["name"] for column in inspector.get_columns("record")}

    assert {"seq", "id", "kind", "attributes", "created_at", "updated_at"} <= columns
    assert "ix_record_kind" in {index["name"] for index in inspector.get_indexes("record")}


def test_store_satisfies_protocol(sql_store: SqlAlchemyRecordStore) -> None:
    assert isinstance(sql_store, RecordStore)


def test_insert_then_find_by_attribute(sql_store: SqlAlchemyRecordStore) -> None:
    results = sql_store.write_batch(
        "Account",
        [_account("Acme", Industry="Retail"), _account("Globex")],
        WriteMode.INSERT,
    )
    sql_store.write_batch(
        "Contact",
        [DomainRecord(kind="Contact", attributes={"LastName": "Doe", "Name": "Acme"})],
        WriteMode.INSERT,
    )

    found = sql_store.find("Account", AttributeIn("Name", frozenset({"Acme", "Initech"})))

    assert [record.id for record in found] == [results[0].id]
    assert found[0].attributes == {"Name": "Acme", "Industry": "Retail"}
    assert found[0].kind == "Account"
    assert len(sql_store.find("Account")) == 2


def test_find_with_empty_values_matches_nothing(sql_store: SqlAlchemyRecordStore) -> None:
    sql_store.write_batch("Account", [_account("Acme")], WriteMode.INSERT)

    assert sql_store.find("Account", AttributeIn("Name", frozenset())) == []


def test_find_returns_records_in_insertion_order(sql_store: SqlAlchemyRecordStore) -> None:
    first = sql_store.write_batch(
        "Account", [_account("Acme", Industry="Retail")], WriteMode.INSERT
    )
    second = sql_store.write_batch(
        "Account", [_account("Acme", Industry="Energy")], WriteMode.INSERT
    )

    found = sql_store.find("Account", AttributeIn("Name", frozenset({"Acme"})))

    assert [record.id for record in found] == [first[0].id, second[0].id]


def test_upsert_updates_known_ids_and_rejects_unknown(
    sql_store: SqlAlchemyRecordStore,
    sqlite_engine: Engine,
) -> None:
    (created,) = sql_store.write_batch("Account", [_account("Acme")], WriteMode.INSERT)
    assert created.id is not None

    results = sql_store.write_batch(
        "Account",
        [
            DomainRecord(
                kind="Account",
                attributes={"Name": "Acme", "Industry": "Energy"},
                id=created.id,
            ),
            DomainRecord(kind="Account", attributes={"Name": "Ghost"}, id="missing-id"),
            _account(""),
            _account("Globex"),
        ],
        WriteMode.UPSERT,
    )

    assert [result.ok for result in results] == [True, False, False, True]
    assert results[0].id == created.id
    assert results[2].error == "required attributes missing: Name"
    assert _row_count(sqlite_engine, "Account") == 2
    (acme,) = sql_store.find("Account", AttributeIn("Name", frozenset({"Acme"})))
    assert acme.attributes["Industry"] == "Energy"


def test_delete_removes_rows(sql_store: SqlAlchemyRecordStore, sqlite_engine: Engine) -> None:
    created = sql_store.write_batch(
        "Account", [_account("Acme"), _account("Globex")], WriteMode.INSERT
    )

    results = sql_store.write_batch(
        "Account",
        [
            DomainRecord(kind="Account", id=created[0].id),
            DomainRecord(kind="Account", id="missing-id"),
        ],
        WriteMode.DELETE,
    )

    assert [result.ok for result in results] == [True, False]
    assert _row_count(sqlite_engine, "Account") == 1


def test_engine_round_trip_through_sql_store(sql_store: SqlAlchemyRecordStore) -> None:
    engine = ReconciliationEngine(sql_store, crm_registry())
    contacts = [
        DomainRecord(kind="Contact", attributes={"LastName": "Doe"}),
        DomainRecord(kind="Contact", attributes={"LastName": "Jane"}),
        DomainRecord(kind="Contact", attributes={"LastName": "Doe"}),
    ]

    engine.upsert("Contact", contacts)
    again = engine.upsert("Account", [_account("Doe"), _account("Jane"), _account("Acme")])

    assert (again.created, again.updated) == (1, 2)
    account_ids = {record.id for record in sql_store.find("Account")}
    stored_contacts = sql_store.find("Contact")
    assert len(stored_contacts) == 3
    assert {record.attributes["AccountId"] for record in stored_contacts} <= account_ids


def test_unreachable_database_raises_unavailable(tmp_path: Path) -> None:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'missing' / 'records.db'}", future=True)
    store = SqlAlchemyRecordStore(sessionmaker(bind=engine), schema=SCHEMA)

    with pytest.raises(StoreUnavailableError):
        store.find("Account")
    with pytest.raises(StoreUnavailableError):
        store.write_batch("Account", [_account("Acme")], WriteMode.INSERT)
    engine.dispose()


def test_find_matches_numeric_values_by_string_form(sql_store: SqlAlchemyRecordStore) -> None:
    (created,) = sql_store.write_batch(
        "Account", [_account("Acme", AccountNumber=42)], WriteMode.INSERT
    )

    found = sql_store.find("Account", AttributeIn("AccountNumber", frozenset({"42"})))

    assert [record.id for record in found] == [created.id]
    assert found[0].attributes["AccountNumber"] == 42
