"""Encoders/decoders between native entities and their stored form.

Stored documents are plain dicts with camelCase keys holding only strings,
numbers and booleans. Absent optional fields are left out entirely.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from labdb.models.entities import Attachment, Link, MemberInfo, News, Person, Photo, Publication, Tag
from labdb.models.enums import Icon, MemberRole, NewsType, TagType

E = TypeVar("E", bound=Enum)

Document = Dict[str, Any]


# -- Scalars -----------------------------------------------------------------


def encode_enum(enum_cls: Type[E], value: Optional[E]) -> Optional[str]:
    if value is None:
        return None
    return enum_cls(value).name


def decode_enum(enum_cls: Type[E], name: Optional[str]) -> Optional[E]:
    """Map a stored name back to its member; unknown names decode to None."""

    if isinstance(name, str) and name in enum_cls.__members__:
        return enum_cls[name]
    return None


def encode_date(value: Optional[Union[date, datetime]]) -> Optional[str]:
    """Encode the calendar day the caller sees in the host's local time."""

    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        value = value.date()
    return value.isoformat()


def decode_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(value)


def _compact(doc: Mapping[str, Any]) -> Document:
    return {key: value for key, value in doc.items() if value is not None}


def _encode_model(obj: Any, *, exclude: set) -> Document:
    return obj.model_dump(by_alias=True, exclude_none=True, exclude=exclude)


# -- Embedded structures -----------------------------------------------------


def encode_tag(tag: Tag) -> Document:
    doc = _encode_model(tag, exclude={"type", "icon"})
    doc["type"] = encode_enum(TagType, tag.type)
    doc["icon"] = encode_enum(Icon, tag.icon)
    return _compact(doc)


def decode_tag(doc: Mapping[str, Any]) -> Tag:
    return Tag.model_validate(
        {**doc, "type": decode_enum(TagType, doc.get("type")), "icon": decode_enum(Icon, doc.get("icon"))}
    )


def encode_link(link: Union[Link, Attachment]) -> Document:
    doc = _encode_model(link, exclude={"icon"})
    doc["icon"] = encode_enum(Icon, link.icon)
    return _compact(doc)


def decode_link(doc: Mapping[str, Any]) -> Link:
    return Link.model_validate({**doc, "icon": decode_enum(Icon, doc.get("icon"))})


def decode_attachment(doc: Mapping[str, Any]) -> Attachment:
    return Attachment.model_validate({**doc, "icon": decode_enum(Icon, doc.get("icon"))})


def encode_member_info(info: MemberInfo) -> Document:
    doc = _encode_model(info, exclude={"role", "when_joined", "when_left", "links"})
    doc["role"] = encode_enum(MemberRole, info.role)
    doc["whenJoined"] = encode_date(info.when_joined)
    doc["whenLeft"] = encode_date(info.when_left)
    if info.links is not None:
        doc["links"] = [encode_link(link) for link in info.links]
    return _compact(doc)


def decode_member_info(doc: Mapping[str, Any]) -> MemberInfo:
    data = dict(doc)
    data["role"] = decode_enum(MemberRole, doc.get("role"))
    data["whenJoined"] = decode_date(doc.get("whenJoined"))
    data["whenLeft"] = decode_date(doc.get("whenLeft"))
    if doc.get("links") is not None:
        data["links"] = [decode_link(link) for link in doc["links"]]
    return MemberInfo.model_validate(_compact(data))


def _encode_tags_and_attachments(obj: Union[Publication, News], doc: Document) -> None:
    if obj.tags is not None:
        doc["tags"] = [encode_tag(tag) for tag in obj.tags]
    if obj.attachments is not None:
        doc["attachments"] = [encode_link(attachment) for attachment in obj.attachments]


def _decode_tags_and_attachments(doc: Mapping[str, Any], data: Document) -> None:
    if doc.get("tags") is not None:
        data["tags"] = [decode_tag(tag) for tag in doc["tags"]]
    if doc.get("attachments") is not None:
        data["attachments"] = [decode_attachment(attachment) for attachment in doc["attachments"]]


# -- Entities ----------------------------------------------------------------


def encode_person(person: Person) -> Document:
    doc = _encode_model(person, exclude={"member_info"})
    if person.member_info is not None:
        doc["memberInfo"] = encode_member_info(person.member_info)
    return doc


def decode_person(doc: Mapping[str, Any]) -> Person:
    data = dict(doc)
    if doc.get("memberInfo") is not None:
        data["memberInfo"] = decode_member_info(doc["memberInfo"])
    return Person.model_validate(data)


def encode_publication(pub: Publication) -> Document:
    doc = _encode_model(pub, exclude={"time", "tags", "attachments"})
    doc["time"] = encode_date(pub.time)
    _encode_tags_and_attachments(pub, doc)
    return doc


def decode_publication(doc: Mapping[str, Any]) -> Publication:
    data = dict(doc)
    data["time"] = decode_date(doc.get("time"))
    _decode_tags_and_attachments(doc, data)
    return Publication.model_validate(data)


def encode_photo(photo: Photo) -> Document:
    doc = _encode_model(photo, exclude={"time"})
    doc["time"] = encode_date(photo.time)
    return doc


def decode_photo(doc: Mapping[str, Any]) -> Photo:
    return Photo.model_validate({**doc, "time": decode_date(doc.get("time"))})


def encode_news(news: News) -> Document:
    doc = _encode_model(news, exclude={"time", "type", "tags", "attachments"})
    doc["time"] = encode_date(news.time)
    doc["type"] = encode_enum(NewsType, news.type)
    _encode_tags_and_attachments(news, doc)
    return _compact(doc)


def decode_news(doc: Mapping[str, Any]) -> News:
    data = dict(doc)
    data["time"] = decode_date(doc.get("time"))
    data["type"] = decode_enum(NewsType, doc.get("type"))
    _decode_tags_and_attachments(doc, data)
    return News.model_validate(data)
