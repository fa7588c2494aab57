"""Custom exception hierarchy for labdb."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class LabDBError(Exception):
    """Base class for store errors with structured payloads."""

    error_code: str = "labdb_error"

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code
        self.message = message
        self.details = details

    def __str__(self) -> str:
        base = f"[{self.error_code}] {self.message}"
        if self.details:
            return f"{base} :: {self.details}"
        return base


class StructuralValidationError(LabDBError):
    """Raised when a document does not match its collection schema."""

    error_code = "structural_validation"

    def __init__(self, collection: str, doc_id: Optional[str], issues: Sequence[str]) -> None:
        self.collection = collection
        self.doc_id = doc_id
        self.issues = list(issues)
        super().__init__(
            f"Document id={doc_id} rejected by {collection} schema",
            details={"issues": self.issues},
        )


class DuplicateIdError(StructuralValidationError):
    """Raised when inserting a document whose primary key is already taken."""

    error_code = "duplicate_id"

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(collection, doc_id, [f"id={doc_id} already exists in {collection}"])


class SchemaMismatchError(LabDBError):
    """Raised when a stored document set was written under another schema."""

    error_code = "schema_mismatch"


class CorruptionError(LabDBError):
    """Raised when referential integrity checks fail while opening the store."""

    error_code = "corruption"

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: List[str] = list(errors)
        super().__init__(
            "Database corrupted. Cannot recover",
            details={"errors": self.errors},
        )


class IdFormatError(LabDBError, ValueError):
    """Raised when an ID suffix is not a 6-character base64 token."""

    error_code = "id_format"


class IdRangeError(LabDBError, ValueError):
    """Raised when a counter cannot be scrambled into an ID."""

    error_code = "id_range"


class NotFoundError(LabDBError, LookupError):
    """Raised when a singular lookup has no match."""

    error_code = "not_found"


class PersistenceError(LabDBError):
    """Raised when a data file cannot be read or written."""

    error_code = "persistence"
