"""Cross-collection referential integrity checks."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from labdb.models.entities import News, Person, Publication
from labdb.store.codec import Document, decode_news, decode_person, decode_publication
from labdb.store.collection import Collection
from labdb.utils.validators import extract_mentions

logger = logging.getLogger(__name__)


@dataclass
class IntegrityReport:
    """Every issue found in one validation run."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _dedupe(values: Sequence[str]) -> Tuple[List[str], bool]:
    unique = list(dict.fromkeys(values))
    return unique, len(unique) != len(values)


class ReferentialIntegrityValidator:
    """Check that foreign keys resolve and foreign-key lists hold no duplicates.

    Person and publication issues are errors. News issues are advisory and
    reported as warnings.
    """

    def __init__(self, persons: Collection, publications: Collection, news: Optional[Collection] = None) -> None:
        self.persons = persons
        self.publications = publications
        self.news = news

    async def _find_person(self, person_id: str) -> Optional[Document]:
        return self.persons.find_one(person_id)

    async def _find_publication(self, pub_id: str) -> Optional[Document]:
        return self.publications.find_one(pub_id)

    async def validate_person(self, person: Person) -> List[str]:
        errors: List[str] = []
        selected = person.member_info.selected_pub_ids if person.member_info else None
        if not selected:
            return errors

        unique_ids, has_duplicates = _dedupe(selected)
        if has_duplicates:
            errors.append(f"Member id={person.id} has duplicate entries in selectedPubIds")

        pubs = await asyncio.gather(*(self._find_publication(pub_id) for pub_id in unique_ids))
        for pub_id, pub in zip(unique_ids, pubs):
            if pub is None:
                errors.append(f"Publication id={pub_id} not found (selected by member id={person.id})")
            elif person.id not in pub["authorIds"]:
                errors.append(
                    f"Publication id={pub_id} does not include member id={person.id} "
                    "as author but is selected by that member"
                )
        return errors

    async def validate_publication(self, pub: Publication) -> List[str]:
        errors: List[str] = []
        unique_ids, has_duplicates = _dedupe(pub.author_ids)
        if has_duplicates:
            errors.append(f"Publication id={pub.id} has duplicate entries in authorIds")

        authors = await asyncio.gather(*(self._find_person(person_id) for person_id in unique_ids))
        for person_id, person in zip(unique_ids, authors):
            if person is None:
                errors.append(f"Person id={person_id} not found (listed as author by publication id={pub.id})")
        return errors

    async def check_news(self, news: News) -> List[str]:
        warnings: List[str] = []

        member_ids, has_duplicates = _dedupe(news.related_members_ids or [])
        if has_duplicates:
            warnings.append(f"News id={news.id} has duplicate entries in relatedMembersIds")
        pub_ids, has_duplicates = _dedupe(news.related_pub_ids or [])
        if has_duplicates:
            warnings.append(f"News id={news.id} has duplicate entries in relatedPubIds")

        members, pubs = await asyncio.gather(
            asyncio.gather(*(self._find_person(person_id) for person_id in member_ids)),
            asyncio.gather(*(self._find_publication(pub_id) for pub_id in pub_ids)),
        )
        for person_id, person in zip(member_ids, members):
            if person is None:
                warnings.append(f"Person id={person_id} not found (related to news id={news.id})")
            elif person.get("memberInfo") is None:
                warnings.append(f"Person id={person_id} is not a member (related to news id={news.id})")
        for pub_id, pub in zip(pub_ids, pubs):
            if pub is None:
                warnings.append(f"Publication id={pub_id} not found (related to news id={news.id})")

        for mention in extract_mentions(news.news, news.details):
            person = await self._find_person(mention)
            if person is None or person.get("memberInfo") is None:
                warnings.append(f"@{mention} mentioned by news id={news.id} is not a member")
        return warnings

    async def run(self) -> IntegrityReport:
        persons = [decode_person(doc) for doc in self.persons.find()]
        pubs = [decode_publication(doc) for doc in self.publications.find()]
        news_items = [decode_news(doc) for doc in self.news.find()] if self.news is not None else []

        person_errors, pub_errors, news_warnings = await asyncio.gather(
            asyncio.gather(*(self.validate_person(person) for person in persons)),
            asyncio.gather(*(self.validate_publication(pub) for pub in pubs)),
            asyncio.gather(*(self.check_news(item) for item in news_items)),
        )

        report = IntegrityReport()
        for errors in list(person_errors) + list(pub_errors):
            report.errors.extend(errors)
        for warnings in news_warnings:
            report.warnings.extend(warnings)
        return report
