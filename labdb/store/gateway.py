"""Persistence gateway: reads and writes whole document sets as YAML files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

import yaml

from labdb.core.config import Settings, get_settings
from labdb.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    """Loads and stores exported collections (`{name, schemaHash, docs}`)."""

    async def load_collection(self, name: str) -> Optional[Dict[str, Any]]:
        ...

    async def write_collection(self, name: str, data: Mapping[str, Any]) -> None:
        ...


class YamlFileGateway:
    """Keep each collection in its own YAML file under a data directory."""

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        *,
        files: Optional[Mapping[str, str]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.data_dir = Path(data_dir) if data_dir is not None else Path(settings.DATA_DIR)
        self.files: Dict[str, str] = dict(files or settings.collection_files)

    def path_for(self, name: str) -> Path:
        try:
            return self.data_dir / self.files[name]
        except KeyError as exc:
            raise PersistenceError(f"No data file configured for collection {name!r}") from exc

    async def load_collection(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(name)

        def read() -> Optional[str]:
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None

        raw = await asyncio.to_thread(read)
        if raw is None:
            logger.info("No %s found, skipping %s import", path.name, name)
            return None

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise PersistenceError(f"Failed to parse {path}: {exc}") from exc

        if data is None:
            return {"name": name, "docs": []}
        if not isinstance(data, dict):
            raise PersistenceError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
        return data

    async def write_collection(self, name: str, data: Mapping[str, Any]) -> None:
        path = self.path_for(name)
        text = yaml.safe_dump(dict(data), default_flow_style=False, sort_keys=False, allow_unicode=True)

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")

        try:
            await asyncio.to_thread(write)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path}: {exc}") from exc
        logger.debug("Wrote %d %s to %s", len(data.get("docs") or []), name, path)
