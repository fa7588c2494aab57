"""Structural schemas for the stored (flat JSON) form of every collection.

Records only hold strings, numbers, booleans and lists thereof: dates are
`YYYY-MM-DD` strings and enums are member names. A document must validate
against its record model before a collection accepts it.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Callable, List, Optional, Type

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    NonNegativeInt,
    PositiveInt,
)
from pydantic.alias_generators import to_camel

from labdb.models.enums import Icon, MemberRole, NewsType, TagType


def _coerce_date(value: Any) -> Any:
    # hand-edited YAML turns bare 2024-03-01 into a date object
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _check_date(value: str) -> str:
    date.fromisoformat(value)
    return value


def _member_of(enum_cls: Type[Enum]) -> Callable[[str], str]:
    def check(value: str) -> str:
        if value not in enum_cls.__members__:
            allowed = ", ".join(enum_cls.__members__)
            raise ValueError(f"{value!r} is not a {enum_cls.__name__} name (expected one of: {allowed})")
        return value

    return check


DateString = Annotated[
    str,
    BeforeValidator(_coerce_date),
    Field(pattern=r"^\d{4}-\d{2}-\d{2}$"),
    AfterValidator(_check_date),
]
DocumentId = Annotated[str, Field(min_length=1, max_length=32)]
IconName = Annotated[str, AfterValidator(_member_of(Icon))]
TagTypeName = Annotated[str, AfterValidator(_member_of(TagType))]
NewsTypeName = Annotated[str, AfterValidator(_member_of(NewsType))]
MemberRoleName = Annotated[str, AfterValidator(_member_of(MemberRole))]


class RecordModel(BaseModel):
    """Base for stored-form schemas: camelCase keys, unknown keys rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TagRecord(RecordModel):
    label: str
    type: TagTypeName
    link: Optional[str] = None
    icon: Optional[IconName] = None


class LinkRecord(RecordModel):
    link: str
    icon: Optional[IconName] = None
    label: Optional[str] = None


class AttachmentRecord(RecordModel):
    label: str
    link: str
    icon: Optional[IconName] = None


class MemberInfoRecord(RecordModel):
    role: MemberRoleName
    when_joined: DateString
    when_left: Optional[DateString] = None
    position: Optional[str] = None
    email: Optional[EmailStr] = None
    office: Optional[str] = None
    links: Optional[List[LinkRecord]] = None
    selected_pub_ids: Optional[List[str]] = None


class PersonRecord(RecordModel):
    id: DocumentId
    firstname: str = Field(..., max_length=50)
    lastname: str = Field(..., max_length=50)
    middlename: Optional[str] = None
    preferred_name: Optional[str] = None
    avatar: Optional[str] = None
    external_link: Optional[str] = None
    member_info: Optional[MemberInfoRecord] = None


class PublicationRecord(RecordModel):
    id: DocumentId
    title: str
    author_ids: List[str] = Field(..., min_length=1)
    time: DateString
    booktitle: Optional[str] = None
    doi: Optional[str] = None
    arxiv_doi: Optional[str] = None
    bibtex: Optional[str] = None
    arxiv_bibtex: Optional[str] = None
    authors_copy: Optional[str] = None
    equal_contrib: Optional[NonNegativeInt] = None
    not_affiliated: Optional[bool] = None
    tags: Optional[List[TagRecord]] = None
    attachments: Optional[List[AttachmentRecord]] = None


class PhotoRecord(RecordModel):
    id: DocumentId
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    width: PositiveInt
    height: PositiveInt
    image: str
    thumbnail: Optional[str] = None
    time: DateString


class NewsRecord(RecordModel):
    id: DocumentId
    news: str
    details: Optional[str] = None
    time: DateString
    type: Optional[NewsTypeName] = None
    related_members_ids: Optional[List[str]] = None
    related_pub_ids: Optional[List[str]] = None
    tags: Optional[List[TagRecord]] = None
    attachments: Optional[List[AttachmentRecord]] = None


def schema_hash(model: Type[RecordModel]) -> str:
    """Fingerprint a record schema so stored files can detect schema drift."""

    schema = model.model_json_schema(by_alias=True)
    # enum membership lives in validators, not the JSON schema
    schema["x-enums"] = {
        enum_cls.__name__: list(enum_cls.__members__)
        for enum_cls in (Icon, MemberRole, NewsType, TagType)
    }
    payload = json.dumps(schema, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
