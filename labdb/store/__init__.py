"""Document store: collections, integrity checks, ID fix-up and persistence."""

from .collection import Collection
from .database import Database
from .gateway import PersistenceGateway, YamlFileGateway
from .ids import IdAllocator, scramble, unscramble
from .integrity import IntegrityReport, ReferentialIntegrityValidator
from .mutator import DatabaseMutator, ReconcileState, open_store

__all__ = [
    "Collection",
    "Database",
    "DatabaseMutator",
    "IdAllocator",
    "IntegrityReport",
    "PersistenceGateway",
    "ReconcileState",
    "ReferentialIntegrityValidator",
    "YamlFileGateway",
    "open_store",
    "scramble",
    "unscramble",
]
