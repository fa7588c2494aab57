"""ID fix-up and write operations on top of `Database`.

Callers outside the store (batch imports, hand-edited data files) may create
documents under temporary IDs that start with a reserved marker, including
whole graphs of documents that reference each other. When a
`DatabaseMutator` is attached to a freshly opened database it runs one
reconciliation pass that:

1. scans every collection, feeding existing permanent IDs to the allocators
   and collecting documents that carry a temporary ID or point at one;
2. allocates permanent IDs for the temporary ones;
3. removes the collected documents;
4. rewrites their foreign keys and the `@id` mentions in news text through
   the other collections' fix maps, then inserts them again;
5. marks the store dirty and logs every temporary -> permanent assignment.

Every public operation waits for that pass to settle first.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from labdb.core.config import Settings, get_settings
from labdb.core.exceptions import DuplicateIdError, StructuralValidationError
from labdb.models.entities import News, Person, Photo, Publication
from labdb.store.codec import (
    Document,
    decode_news,
    decode_person,
    decode_photo,
    decode_publication,
    encode_news,
    encode_person,
    encode_photo,
    encode_publication,
)
from labdb.store.collection import Collection
from labdb.store.database import Database
from labdb.store.gateway import PersistenceGateway
from labdb.store.ids import IdAllocator
from labdb.utils.validators import extract_mentions, rewrite_mentions

logger = logging.getLogger(__name__)

T = TypeVar("T", Person, Publication, Photo, News)


class ReconcileState(Enum):
    UNINITIALIZED = "uninitialized"
    SCANNING = "scanning"
    FIXED_UP = "fixed_up"
    SETTLED = "settled"


class CollectionMutator(Generic[T]):
    """Fix-up bookkeeping and ID allocation for a single collection."""

    def __init__(
        self,
        kind: str,
        collection: Collection,
        numbered_prefix: str,
        temp_prefix: str,
        decode: Callable[[Document], T],
        encode: Callable[[T], Document],
        needs_fix: Optional[Callable[[T], bool]] = None,
    ) -> None:
        self.kind = kind
        self.collection = collection
        self.allocator = IdAllocator(numbered_prefix)
        self.temp_prefix = temp_prefix
        self.decode = decode
        self.encode = encode
        self.needs_fix = needs_fix or (lambda obj: False)
        self.fixes: Dict[str, T] = {}
        self.pending_removals: List[str] = []

    def is_temporary(self, doc_id: str) -> bool:
        return doc_id.startswith(self.temp_prefix)

    async def scan_for_fixes(self) -> None:
        for doc in self.collection.find():
            obj = self.decode(doc)
            self.allocator.observe(obj.id)
            if self.is_temporary(obj.id) or self.needs_fix(obj):
                self.fixes[obj.id] = obj
                self.pending_removals.append(obj.id)

        # allocate only once every existing ID has been observed
        for obj in self.fixes.values():
            if self.is_temporary(obj.id):
                obj.id = self.allocator.allocate()

    def apply_removals(self) -> None:
        for doc_id in self.pending_removals:
            self.collection.remove(doc_id)
        self.pending_removals = []

    def resolve(self, doc_id: str) -> str:
        """Map an ID through this collection's fixes; unknown IDs pass through."""

        fixed = self.fixes.get(doc_id)
        return fixed.id if fixed is not None else doc_id

    def resolve_all(self, doc_ids: Optional[Iterable[str]]) -> Optional[List[str]]:
        if doc_ids is None:
            return None
        return [self.resolve(doc_id) for doc_id in doc_ids]

    def reinsert(self, rewrite: Optional[Callable[[T], None]] = None) -> None:
        for obj in self.fixes.values():
            if rewrite is not None:
                rewrite(obj)
            self.collection.insert(self.encode(obj))

    def reassignments(self) -> Dict[str, str]:
        return {old_id: obj.id for old_id, obj in self.fixes.items() if obj.id != old_id}

    def clear_fixes(self) -> None:
        self.fixes = {}
        self.pending_removals = []

    def alloc_id(self) -> str:
        return self.allocator.allocate()


class DatabaseMutator:
    """Write access to a `Database`, gated on the one-time ID fix-up pass.

    Must be constructed inside a running event loop: the reconciliation task
    is scheduled immediately and `settle()` waits for it.
    """

    def __init__(self, db: Database, *, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.db = db
        self.dirty = False
        self.state = ReconcileState.UNINITIALIZED
        self.reassigned: Dict[str, Dict[str, str]] = {}
        self.temp_prefix = settings.TEMP_ID_PREFIX
        prefixes = settings.id_prefixes

        self.persons_mutator: CollectionMutator[Person] = CollectionMutator(
            "person",
            db.persons,
            prefixes["persons"],
            self.temp_prefix,
            decode_person,
            encode_person,
            needs_fix=lambda person: self._any_temporary(
                person.member_info.selected_pub_ids if person.member_info else None
            ),
        )
        self.pubs_mutator: CollectionMutator[Publication] = CollectionMutator(
            "publication",
            db.publications,
            prefixes["publications"],
            self.temp_prefix,
            decode_publication,
            encode_publication,
            needs_fix=lambda pub: self._any_temporary(pub.author_ids),
        )
        self.photos_mutator: CollectionMutator[Photo] = CollectionMutator(
            "photo",
            db.photos,
            prefixes["photos"],
            self.temp_prefix,
            decode_photo,
            encode_photo,
        )
        self.news_mutator: CollectionMutator[News] = CollectionMutator(
            "news",
            db.news,
            prefixes["news"],
            self.temp_prefix,
            decode_news,
            encode_news,
            needs_fix=lambda news: self._any_temporary(news.related_members_ids)
            or self._any_temporary(news.related_pub_ids)
            or self._any_temporary(extract_mentions(news.news, news.details)),
        )

        self._pending = asyncio.get_running_loop().create_task(self._reconcile())

    @property
    def _mutators(self) -> Dict[str, CollectionMutator]:
        return {
            "persons": self.persons_mutator,
            "publications": self.pubs_mutator,
            "photos": self.photos_mutator,
            "news": self.news_mutator,
        }

    def _any_temporary(self, doc_ids: Optional[Iterable[str]]) -> bool:
        return any(doc_id.startswith(self.temp_prefix) for doc_id in doc_ids or ())

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def _reconcile(self) -> None:
        self.state = ReconcileState.SCANNING
        await asyncio.gather(*(mutator.scan_for_fixes() for mutator in self._mutators.values()))

        # persons and publications point at each other: both removals land
        # before either side is rewritten and reinserted
        self.persons_mutator.apply_removals()
        self.pubs_mutator.apply_removals()
        self.persons_mutator.reinsert(self._rewrite_person)
        self.pubs_mutator.reinsert(self._rewrite_publication)

        self.photos_mutator.apply_removals()
        self.photos_mutator.reinsert()

        self.news_mutator.apply_removals()
        self.news_mutator.reinsert(self._rewrite_news)
        self.state = ReconcileState.FIXED_UP

        fixed = sum(len(mutator.fixes) for mutator in self._mutators.values())
        self.dirty = fixed > 0
        for name, mutator in self._mutators.items():
            mapping = mutator.reassignments()
            for old_id, new_id in mapping.items():
                logger.info(
                    "Assigned permanent ID=%r for %s with temporary ID=%r", new_id, mutator.kind, old_id
                )
            if mapping:
                self.reassigned[name] = mapping
            mutator.clear_fixes()

        if fixed:
            # fix-up only repairs IDs; semantic mismatches are left for the operator
            report = await self.db.validate()
            for error in report.errors:
                logger.warning("Integrity issue after ID fix-up: %s", error)

        self.state = ReconcileState.SETTLED

    def _rewrite_person(self, person: Person) -> None:
        if person.member_info is not None and person.member_info.selected_pub_ids is not None:
            person.member_info.selected_pub_ids = self.pubs_mutator.resolve_all(person.member_info.selected_pub_ids)

    def _rewrite_publication(self, pub: Publication) -> None:
        pub.author_ids = self.persons_mutator.resolve_all(pub.author_ids)

    def _rewrite_news(self, news: News) -> None:
        news.related_members_ids = self.persons_mutator.resolve_all(news.related_members_ids)
        news.related_pub_ids = self.pubs_mutator.resolve_all(news.related_pub_ids)
        news.news = rewrite_mentions(news.news, self.persons_mutator.resolve)
        news.details = rewrite_mentions(news.details, self.persons_mutator.resolve)

    async def settle(self) -> None:
        """Wait until the fix-up pass has finished."""

        await self._pending

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def persist(self, force: bool = False) -> bool:
        """Flush to the gateway if anything changed; returns whether it wrote."""

        await self.settle()
        if not (force or self.dirty):
            return False
        await self.db.persist()
        self.dirty = False
        return True

    async def _create(self, mutator: CollectionMutator[T], entity: T) -> T:
        await self.settle()
        allocated: Optional[str] = None
        if entity.id is None:
            allocated = mutator.alloc_id()
            entity = entity.model_copy(update={"id": allocated})

        try:
            doc = mutator.collection.insert(mutator.encode(entity))
        except DuplicateIdError:
            raise
        except StructuralValidationError:
            if allocated is not None:
                mutator.allocator.release(allocated)
            raise

        if allocated is None:
            # caller-chosen IDs may land in the numbered range
            mutator.allocator.observe(doc["id"])
        self.dirty = True
        return mutator.decode(doc)

    async def create_person(self, person: Person) -> Person:
        return await self._create(self.persons_mutator, person)

    async def create_publication(self, pub: Publication) -> Publication:
        return await self._create(self.pubs_mutator, pub)

    async def create_photo(self, photo: Photo) -> Photo:
        return await self._create(self.photos_mutator, photo)

    async def create_news(self, news: News) -> News:
        return await self._create(self.news_mutator, news)


async def open_store(
    gateway: Optional[PersistenceGateway] = None,
    *,
    ignore_schema_hash: bool = False,
    settings: Optional[Settings] = None,
) -> DatabaseMutator:
    """Open the database, run the ID fix-up pass and return the settled handle."""

    settings = settings or get_settings()
    db = await Database.open(gateway, ignore_schema_hash=ignore_schema_hash, settings=settings)
    mutator = DatabaseMutator(db, settings=settings)
    await mutator.settle()
    return mutator
