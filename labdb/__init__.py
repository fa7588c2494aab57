"""labdb: a validated YAML document store for lab website content."""

from labdb.core.config import Settings, get_settings
from labdb.core.exceptions import (
    CorruptionError,
    DuplicateIdError,
    IdFormatError,
    IdRangeError,
    LabDBError,
    NotFoundError,
    PersistenceError,
    SchemaMismatchError,
    StructuralValidationError,
)
from labdb.store.database import Database
from labdb.store.mutator import DatabaseMutator, open_store

__all__ = [
    "CorruptionError",
    "Database",
    "DatabaseMutator",
    "DuplicateIdError",
    "IdFormatError",
    "IdRangeError",
    "LabDBError",
    "NotFoundError",
    "PersistenceError",
    "SchemaMismatchError",
    "Settings",
    "StructuralValidationError",
    "get_settings",
    "open_store",
]
