"""Native entity types consumed by the read/write API.

Unlike the stored records, these carry real `date` values and enum members.
`id` is optional only so that create operations can allocate it; every
document returned by the store has one.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from labdb.models.enums import Icon, MemberRole, NewsType, TagType


class EntityModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Tag(EntityModel):
    label: str
    type: TagType
    link: Optional[str] = None
    icon: Optional[Icon] = None


class Link(EntityModel):
    link: str
    icon: Optional[Icon] = None
    label: Optional[str] = None


class Attachment(EntityModel):
    label: str
    link: str
    icon: Optional[Icon] = None


class MemberInfo(EntityModel):
    role: MemberRole
    when_joined: date
    when_left: Optional[date] = None
    position: Optional[str] = None
    email: Optional[str] = None
    office: Optional[str] = None
    links: Optional[List[Link]] = None
    selected_pub_ids: Optional[List[str]] = None


class Person(EntityModel):
    id: Optional[str] = None
    firstname: str
    lastname: str
    middlename: Optional[str] = None
    preferred_name: Optional[str] = Field(None, description="Name the person goes by")
    avatar: Optional[str] = None
    external_link: Optional[str] = None
    member_info: Optional[MemberInfo] = None

    @property
    def is_member(self) -> bool:
        return self.member_info is not None

    @property
    def is_alumni(self) -> bool:
        return self.member_info is not None and self.member_info.when_left is not None

    @property
    def full_name(self) -> str:
        name = f"{self.firstname} {self.middlename}" if self.middlename else self.firstname
        if self.preferred_name:
            return f'{name} "{self.preferred_name}" {self.lastname}'
        return f"{name} {self.lastname}"

    @property
    def avatar_placeholder(self) -> str:
        """Initials shown when a person has no avatar image."""

        parts = [self.preferred_name or self.firstname, self.lastname]
        return "".join(part[0] for part in parts if part).upper()


class Publication(EntityModel):
    id: Optional[str] = None
    title: str
    author_ids: List[str]
    time: date
    booktitle: Optional[str] = None
    doi: Optional[str] = None
    arxiv_doi: Optional[str] = None
    bibtex: Optional[str] = None
    arxiv_bibtex: Optional[str] = None
    authors_copy: Optional[str] = None
    equal_contrib: Optional[int] = Field(None, description="Number of leading authors sharing first authorship")
    not_affiliated: Optional[bool] = None
    tags: Optional[List[Tag]] = None
    attachments: Optional[List[Attachment]] = None


class Photo(EntityModel):
    id: Optional[str] = None
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    width: int
    height: int
    image: str
    thumbnail: Optional[str] = None
    time: date


class News(EntityModel):
    id: Optional[str] = None
    news: str
    details: Optional[str] = None
    time: date
    type: Optional[NewsType] = None
    related_members_ids: Optional[List[str]] = None
    related_pub_ids: Optional[List[str]] = None
    tags: Optional[List[Tag]] = None
    attachments: Optional[List[Attachment]] = None
