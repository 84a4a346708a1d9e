from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from recordsync.adapters.jsonl import RecordFileError, read_records


def test_read_records_splits_id_from_attributes(tmp_path: Path) -> None:
    path = tmp_path / "accounts.jsonl"
    path.write_text(
        '{"Name": "Acme", "Industry": "Retail"}\n'
        "\n"
        '{"id": "acc-1", "Name": "Globex", "Employees": 12}\n'
        '{"id": "  ", "Name": "Initech"}\n',
        encoding="utf-8",
    )

    records = read_records(path, kind="Account")

    assert [record.id for record in records] == [None, "acc-1", None]
    assert records[0].attributes == {"Name": "Acme", "Industry": "Retail"}
    assert records[1].attributes == {"Name": "Globex", "Employees": 12}
    assert all(record.kind == "Account" for record in records)


def test_read_records_reports_line_of_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.jsonl"
    path.write_text('{"Name": "Acme"}\n{"Name": \n', encoding="utf-8")

    with pytest.raises(RecordFileError) as excinfo:
        read_records(path, kind="Account")

    assert excinfo.value.line_number == 2
    assert "invalid JSON" in str(excinfo.value)


def test_read_records_rejects_non_object_lines(tmp_path: Path) -> None:
    path = tmp_path / "list.jsonl"
    path.write_text('["Acme"]\n', encoding="utf-8")

    with pytest.raises(RecordFileError) as excinfo:
        read_records(path, kind="Account")

    assert excinfo.value.line_number == 1


def test_read_records_rejects_non_string_ids(tmp_path: Path) -> None:
    path = tmp_path / "ids.jsonl"
    path.write_text('{"id": {"nested": true}, "Name": "Acme"}\n', encoding="utf-8")

    with pytest.raises(RecordFileError):
        read_records(path, kind="Account")


def test_read_records_reports_line_of_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "latin1.jsonl"
    path.write_bytes(b'{"Name": "Acme"}\n{"Name": "\xff"}\n')

    with pytest.raises(RecordFileError) as excinfo:
        read_records(path, kind="Account")

    assert excinfo.value.line_number == 2
    assert "invalid UTF-8" in str(excinfo.value)


def test_read_records_keeps_non_ascii_text(tmp_path: Path) -> None:
    path = tmp_path / "accounts.jsonl"
    path.write_text('{"Name": "Müller GmbH"}\r\n', encoding="utf-8")

    records = read_records(path, kind="Account")

    assert records[0].attributes == {"Name": "Müller GmbH"}
