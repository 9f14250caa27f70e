from __future__ import annotations

from datetime import datetime, timezone

import pytest

from sierra_gateway.domain.entities.catalog import (
    BibRecordIn,
    BibRecordsIn,
    ItemRecordIn,
    ItemRecordsIn,
    clean_call_number,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("|aJC578.R383|bG67 2007", "JC578.R383 G67 2007"),
        ("|aPR6068.O93|bH372 1999   ", "PR6068.O93 H372 1999"),
        ("", ""),
    ],
)
def test_clean_call_number(raw, expected) -> None:
    assert clean_call_number(raw) == expected


def test_item_without_due_date_is_in_library() -> None:
    item = ItemRecordIn.model_validate(
        {
            "id": 2536252,
            "location": {"code": "flr4 ", "name": "Floor 4 Books"},
            "status": {"code": "-", "display": "IN LIBRARY"},
            "callNumber": "|aJC578.R383|bG67 2007",
        }
    )
    out = item.convert()
    assert out.call_number == "JC578.R383 G67 2007"
    assert out.status == "In Library"
    assert out.location == "Floor 4 Books"


def test_item_with_due_date() -> None:
    item = ItemRecordIn.model_validate(
        {
            "callNumber": "|aPR6068.O93|bH372 1999   ",
            "status": {"duedate": "2014-11-13T09:00:00Z"},
            "location": {"name": "Floor 3 Books"},
        }
    )
    assert item.convert().status == "Due November 13, 2014"


def test_items_convert_keeps_order() -> None:
    records = ItemRecordsIn.model_validate(
        {
            "entries": [
                {"callNumber": "|aA1", "location": {"name": "One"}},
                {"callNumber": "|aB2", "location": {"name": "Two"}},
            ]
        }
    )
    assert [r.location for r in records.convert()] == ["One", "Two"]


def _bib(bib_id: int, created: str, fields: list) -> dict:
    return {"id": bib_id, "createdDate": created, "marc": {"leader": "00000nam", "fields": fields}}


def test_bib_extracts_title_and_isbns() -> None:
    bib = BibRecordIn.model_validate(
        _bib(
            1001,
            "2014-11-01T10:00:00Z",
            [
                {"tag": "245", "data": {"subfields": [{"code": "a", "data": "Gone girl :"}, {"code": "c", "data": " Gillian Flynn."}]}},
                {"tag": "020", "data": {"subfields": [{"code": "a", "data": "9780307588364 (hardback)"}]}},
                {"tag": "020", "data": {"subfields": [{"code": "a", "data": "0307588378"}, {"code": "q", "data": "ebook"}]}},
                {"tag": "650", "data": {"subfields": [{"code": "a", "data": "Married people"}]}},
            ],
        )
    )
    out = bib.convert()
    assert out.bib_id == 1001
    assert out.title_and_author == "Gone girl : Gillian Flynn."
    assert out.isbns == ["9780307588364", "0307588378"]
    assert out.created_date == datetime(2014, 11, 1, 10, 0, tzinfo=timezone.utc)


def test_bibs_sorted_by_created_date_then_id() -> None:
    records = BibRecordsIn.model_validate(
        {
            "entries": [
                _bib(3, "2014-11-02T00:00:00Z", []),
                _bib(2, "2014-11-01T00:00:00Z", []),
                _bib(1, "2014-11-02T00:00:00Z", []),
            ]
        }
    )
    assert [r.bib_id for r in records.convert()] == [2, 1, 3]
