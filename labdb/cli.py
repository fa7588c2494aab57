"""
Maintenance commands for the labdb data files.

Usage:
    labdb [--data-dir DIR] [validate|fix|update-schema]

``validate`` loads the store and reports integrity problems, ``fix`` runs the
temporary-ID fix-up and writes the result back, and ``update-schema`` accepts
data files stamped with an older schema hash and re-stamps them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from labdb.core.config import get_settings
from labdb.core.exceptions import CorruptionError, LabDBError
from labdb.core.logging import configure_logging
from labdb.store.database import Database
from labdb.store.gateway import YamlFileGateway
from labdb.store.mutator import open_store

logger = logging.getLogger(__name__)


async def validate_store(data_dir: Optional[Path] = None) -> bool:
    """Open the store read-only and log what the integrity checks found."""

    db = await Database.open(YamlFileGateway(data_dir))
    report = await db.validate()
    logger.info("Integrity check passed with %d warning(s)", len(report.warnings))
    return report.ok


async def fix_store(data_dir: Optional[Path] = None) -> None:
    """Assign permanent IDs to temporary ones and rewrite the data files."""

    store = await open_store(YamlFileGateway(data_dir))
    for collection, mapping in store.reassigned.items():
        logger.info("Reassigned %d %s", len(mapping), collection)
    await store.persist(force=True)
    logger.info("Data files written")


async def update_schema(data_dir: Optional[Path] = None) -> None:
    """Re-stamp every data file with the current schema hash."""

    store = await open_store(YamlFileGateway(data_dir), ignore_schema_hash=True)
    await store.persist(force=True)
    logger.info("Schema hashes updated")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""

    parser = argparse.ArgumentParser(description="labdb maintenance tool")
    parser.add_argument(
        "command",
        nargs="?",
        default="validate",
        choices=["validate", "fix", "update-schema"],
        help="Command to execute (default: validate)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the YAML data files (default: LABDB_DATA_DIR)",
    )

    args = parser.parse_args(argv)
    configure_logging(get_settings())

    try:
        if args.command == "validate":
            if not asyncio.run(validate_store(args.data_dir)):
                sys.exit(1)
        elif args.command == "fix":
            asyncio.run(fix_store(args.data_dir))
        elif args.command == "update-schema":
            asyncio.run(update_schema(args.data_dir))
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user.")
        sys.exit(1)
    except CorruptionError as e:
        for error in e.errors:
            print(error, file=sys.stderr)
        logger.error("Operation failed: %s", e.message)
        sys.exit(1)
    except LabDBError as e:
        logger.error("Operation failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
