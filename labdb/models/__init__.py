from .entities import Attachment, Link, MemberInfo, News, Person, Photo, Publication, Tag
from .enums import Icon, MemberRole, NewsType, TagType
from .records import NewsRecord, PersonRecord, PhotoRecord, PublicationRecord

__all__ = [
    "Attachment",
    "Icon",
    "Link",
    "MemberInfo",
    "MemberRole",
    "News",
    "NewsRecord",
    "NewsType",
    "Person",
    "PersonRecord",
    "Photo",
    "PhotoRecord",
    "Publication",
    "PublicationRecord",
    "Tag",
    "TagType",
]
