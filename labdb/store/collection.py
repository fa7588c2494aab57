"""In-memory document collection guarded by a structural schema."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import ValidationError

from labdb.core.exceptions import DuplicateIdError, SchemaMismatchError, StructuralValidationError
from labdb.models.records import RecordModel, schema_hash

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


def _format_issues(exc: ValidationError) -> List[str]:
    issues = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"])
        issues.append(f"{path}: {error['msg']}" if path else error["msg"])
    return issues


class Collection:
    """Ordered map of documents keyed by `id`.

    Documents go in and come out as plain dicts in stored form. Reads hand out
    copies, so callers never mutate stored state behind the collection's back.
    """

    def __init__(self, name: str, record_model: Type[RecordModel]) -> None:
        self.name = name
        self.record_model = record_model
        self.schema_hash = schema_hash(record_model)
        self._docs: Dict[str, Document] = {}

    def __len__(self) -> int:
        return len(self._docs)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._docs

    def validate(self, doc: Mapping[str, Any]) -> Document:
        """Check `doc` against the schema and return its normalized form."""

        try:
            record = self.record_model.model_validate(doc)
        except ValidationError as exc:
            doc_id = doc.get("id") if isinstance(doc, Mapping) else None
            raise StructuralValidationError(self.name, doc_id, _format_issues(exc)) from exc
        return record.to_document()

    def insert(self, doc: Mapping[str, Any]) -> Document:
        normalized = self.validate(doc)
        doc_id = normalized["id"]
        if doc_id in self._docs:
            raise DuplicateIdError(self.name, doc_id)
        self._docs[doc_id] = normalized
        return copy.deepcopy(normalized)

    def remove(self, doc_id: str) -> Optional[Document]:
        return self._docs.pop(doc_id, None)

    def find(self, predicate: Optional[Callable[[Document], bool]] = None) -> List[Document]:
        return [copy.deepcopy(doc) for doc in self._docs.values() if predicate is None or predicate(doc)]

    def find_one(self, doc_id: str) -> Optional[Document]:
        doc = self._docs.get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def find_by_ids(self, doc_ids: Iterable[str]) -> List[Document]:
        """Resolve IDs in the order given; unknown IDs are skipped."""

        found = []
        seen = set()
        for doc_id in doc_ids:
            if doc_id in seen or doc_id not in self._docs:
                continue
            seen.add(doc_id)
            found.append(copy.deepcopy(self._docs[doc_id]))
        return found

    def find_where(self, **equals: Any) -> List[Document]:
        """Equality lookup on top-level fields; list fields match on membership."""

        def matches(doc: Document) -> bool:
            for key, expected in equals.items():
                actual = doc.get(key)
                if isinstance(actual, list) and not isinstance(expected, list):
                    if expected not in actual:
                        return False
                elif actual != expected:
                    return False
            return True

        return self.find(matches)

    def export_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schemaHash": self.schema_hash,
            "docs": [copy.deepcopy(doc) for doc in self._docs.values()],
        }

    def import_json(self, data: Mapping[str, Any], *, ignore_schema_hash: bool = False) -> int:
        """Insert every document of an exported set; returns the count imported."""

        stored_hash = data.get("schemaHash")
        if stored_hash and stored_hash != self.schema_hash:
            if not ignore_schema_hash:
                raise SchemaMismatchError(
                    f"Stored {self.name} were written under another schema",
                    details={"stored": stored_hash, "current": self.schema_hash},
                )
            logger.info("Replacing stored %s schema hash with the current one", self.name)

        docs = data.get("docs") or []
        for doc in docs:
            self.insert(doc)
        return len(docs)
