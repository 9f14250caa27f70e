from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

IN_LIBRARY = "In Library"

TITLE_AND_AUTHOR_TAG = "245"
ISBN_TAG = "020"


def clean_call_number(raw: str) -> str:
    return raw.replace("|a", " ").replace("|b", " ").strip()


def format_due(due: datetime) -> str:
    return f"Due {due:%B} {due.day}, {due.year}"


# ----------------------------
# Items
# ----------------------------


class ItemStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    display: str | None = None
    duedate: datetime | None = None


class ItemLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    name: str = ""


class ItemRecordIn(BaseModel):
    """
    A Sierra `items` entry, reduced to the fields the public schema needs.
    """

    model_config = ConfigDict(extra="ignore")

    callNumber: str = ""
    status: ItemStatus = Field(default_factory=ItemStatus)
    location: ItemLocation = Field(default_factory=ItemLocation)

    def convert(self) -> ItemRecordOut:
        if self.status.duedate is None:
            status = IN_LIBRARY
        else:
            status = format_due(self.status.duedate)
        return ItemRecordOut(
            call_number=clean_call_number(self.callNumber),
            status=status,
            location=self.location.name,
        )


class ItemRecordOut(BaseModel):
    call_number: str
    status: str
    location: str


class ItemRecordsIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entries: list[ItemRecordIn] = Field(default_factory=list)

    def convert(self) -> list[ItemRecordOut]:
        return [entry.convert() for entry in self.entries]


# ----------------------------
# Bibs
# ----------------------------


class MarcSubfield(BaseModel):
    code: str = ""
    data: str = ""


class MarcFieldData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subfields: list[MarcSubfield] = Field(default_factory=list)


class MarcField(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tag: str = ""
    data: MarcFieldData = Field(default_factory=MarcFieldData)


class Marc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    leader: str | None = None
    fields: list[MarcField] = Field(default_factory=list)


class BibRecordIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    createdDate: datetime
    marc: Marc = Field(default_factory=Marc)

    def convert(self) -> BibRecordOut:
        title_and_author = ""
        isbns: list[str] = []
        for field in self.marc.fields:
            if field.tag == TITLE_AND_AUTHOR_TAG:
                title_and_author += "".join(sub.data for sub in field.data.subfields)
            elif field.tag == ISBN_TAG:
                # "0306406152 (pbk.)" -> "0306406152"
                isbns.extend(sub.data.split(" ")[0] for sub in field.data.subfields if sub.code == "a")
        return BibRecordOut(
            bib_id=self.id,
            title_and_author=title_and_author,
            isbns=isbns,
            created_date=self.createdDate,
        )


class BibRecordOut(BaseModel):
    bib_id: int
    title_and_author: str
    isbns: list[str]
    created_date: datetime


class BibRecordsIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entries: list[BibRecordIn] = Field(default_factory=list)

    def convert(self) -> list[BibRecordOut]:
        """Converted records, oldest first; ties broken by bib id."""
        out = [entry.convert() for entry in self.entries]
        out.sort(key=lambda rec: (rec.created_date, rec.bib_id))
        return out


def dump_records(records: list[Any]) -> list[dict[str, Any]]:
    return [rec.model_dump(mode="json") for rec in records]
