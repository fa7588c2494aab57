"""Validated document database backing the lab site content."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from labdb.core.config import Settings, get_settings
from labdb.core.exceptions import CorruptionError, NotFoundError
from labdb.models.entities import News, Person, Photo, Publication
from labdb.models.records import NewsRecord, PersonRecord, PhotoRecord, PublicationRecord
from labdb.store.codec import decode_news, decode_person, decode_photo, decode_publication
from labdb.store.collection import Collection
from labdb.store.gateway import PersistenceGateway, YamlFileGateway
from labdb.store.integrity import IntegrityReport, ReferentialIntegrityValidator
from labdb.utils.validators import sanitize_doi

logger = logging.getLogger(__name__)

COLLECTION_SCHEMAS = {
    "persons": PersonRecord,
    "publications": PublicationRecord,
    "photos": PhotoRecord,
    "news": NewsRecord,
}


class Database:
    """Four schema-validated collections plus the read API over them.

    Obtain an instance through `Database.open`, which hydrates the collections
    from the gateway and refuses to return a store that fails integrity checks.
    """

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway
        self.collections: Dict[str, Collection] = {
            name: Collection(name, schema) for name, schema in COLLECTION_SCHEMAS.items()
        }

    @property
    def persons(self) -> Collection:
        return self.collections["persons"]

    @property
    def publications(self) -> Collection:
        return self.collections["publications"]

    @property
    def photos(self) -> Collection:
        return self.collections["photos"]

    @property
    def news(self) -> Collection:
        return self.collections["news"]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def open(
        cls,
        gateway: Optional[PersistenceGateway] = None,
        *,
        ignore_schema_hash: bool = False,
        settings: Optional[Settings] = None,
    ) -> "Database":
        """Load every collection and verify referential integrity.

        `ignore_schema_hash` is for the schema-upgrade path: stored files
        written under an older schema are accepted and re-stamped.
        """

        db = cls(gateway or YamlFileGateway(settings=settings or get_settings()))
        await db._hydrate(ignore_schema_hash)

        report = await db.validate()
        for warning in report.warnings:
            logger.warning(warning)
        if not report.ok:
            for error in report.errors:
                logger.error(error)
            raise CorruptionError(report.errors)

        logger.info(
            "Database opened: %d persons, %d publications, %d photos, %d news",
            len(db.persons),
            len(db.publications),
            len(db.photos),
            len(db.news),
        )
        return db

    async def _hydrate(self, ignore_schema_hash: bool) -> None:
        names = list(self.collections)
        loaded = await asyncio.gather(*(self.gateway.load_collection(name) for name in names))
        for name, data in zip(names, loaded):
            if data is None:
                continue
            count = self.collections[name].import_json(data, ignore_schema_hash=ignore_schema_hash)
            logger.debug("Imported %d %s", count, name)

    async def validate(self) -> IntegrityReport:
        validator = ReferentialIntegrityValidator(self.persons, self.publications, self.news)
        return await validator.run()

    async def persist(self) -> None:
        """Overwrite every stored collection with the current contents."""

        await asyncio.gather(
            *(self.gateway.write_collection(name, collection.export_json()) for name, collection in self.collections.items())
        )
        logger.info("Persisted %d collections", len(self.collections))

    # ------------------------------------------------------------------
    # Persons / members
    # ------------------------------------------------------------------

    async def get_many_persons(self, person_ids: Optional[Iterable[str]] = None) -> List[Person]:
        if person_ids is None:
            docs = self.persons.find()
        else:
            docs = self.persons.find_by_ids(person_ids)
        return [decode_person(doc) for doc in docs]

    async def get_person(self, person_id: str) -> Person:
        doc = self.persons.find_one(person_id)
        if doc is None:
            raise NotFoundError(f"No person found id={person_id}")
        return decode_person(doc)

    async def get_many_members(self, person_ids: Optional[Iterable[str]] = None) -> List[Person]:
        if person_ids is None:
            return [decode_person(doc) for doc in self.persons.find(lambda doc: doc.get("memberInfo") is not None)]

        persons = await self.get_many_persons(person_ids)
        non_member_ids = [person.id for person in persons if not person.is_member]
        if non_member_ids:
            raise NotFoundError(
                f"Persons with id=({','.join(non_member_ids)}) are not members",
                details={"person_ids": non_member_ids},
            )
        return persons

    async def get_member(self, person_id: str) -> Person:
        person = await self.get_person(person_id)
        if not person.is_member:
            raise NotFoundError(f"Person with id={person_id} is not a member")
        return person

    # ------------------------------------------------------------------
    # Publications
    # ------------------------------------------------------------------

    async def get_many_publications(self, pub_ids: Optional[Iterable[str]] = None) -> List[Publication]:
        if pub_ids is None:
            docs = self.publications.find()
        else:
            docs = self.publications.find_by_ids(pub_ids)
        return [decode_publication(doc) for doc in docs]

    async def get_publication(self, pub_id: str) -> Publication:
        doc = self.publications.find_one(pub_id)
        if doc is None:
            raise NotFoundError(f"No publication found id={pub_id}")
        return decode_publication(doc)

    async def get_all_publications_by_person(self, person_id: str) -> List[Publication]:
        return [decode_publication(doc) for doc in self.publications.find_where(authorIds=person_id)]

    async def find_publications_by_doi(self, doi: str) -> List[Publication]:
        """Publications whose DOI or arXiv DOI matches `doi` (case-insensitive)."""

        wanted = (sanitize_doi(doi) or doi).lower()

        def matches(doc: Dict) -> bool:
            for key in ("doi", "arxivDoi"):
                stored = doc.get(key)
                if stored and (sanitize_doi(stored) or stored).lower() == wanted:
                    return True
            return False

        return [decode_publication(doc) for doc in self.publications.find(matches)]

    # ------------------------------------------------------------------
    # Photos / news
    # ------------------------------------------------------------------

    async def get_many_photos(self, photo_ids: Optional[Iterable[str]] = None) -> List[Photo]:
        if photo_ids is None:
            docs = self.photos.find()
        else:
            docs = self.photos.find_by_ids(photo_ids)
        return [decode_photo(doc) for doc in docs]

    async def get_photo(self, photo_id: str) -> Photo:
        doc = self.photos.find_one(photo_id)
        if doc is None:
            raise NotFoundError(f"No photo found id={photo_id}")
        return decode_photo(doc)

    async def get_many_news(self, news_ids: Optional[Iterable[str]] = None) -> List[News]:
        if news_ids is None:
            docs = self.news.find()
        else:
            docs = self.news.find_by_ids(news_ids)
        return [decode_news(doc) for doc in docs]

    async def get_news(self, news_id: str) -> News:
        doc = self.news.find_one(news_id)
        if doc is None:
            raise NotFoundError(f"No news found id={news_id}")
        return decode_news(doc)
