"""
Catalog loading abstraction.

Separates catalog file access from the engine so tests can build catalogs
in memory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import ValidationError

from ..errors import CatalogLoadError
from .catalog import Catalog

logger = logging.getLogger(__name__)

# Catalog section name -> file stem
CATALOG_SECTIONS = ("buffs", "flags", "items", "variables", "skills")

SUFFIXES = (".json", ".yaml", ".yml")


@runtime_checkable
class CatalogLoader(Protocol):
    """
    Source of catalog documents.

    Implementations:
    - DirectoryCatalogLoader: JSON/YAML files on disk (production)
    - MemoryCatalogLoader: in-memory dicts (testing)
    """

    def load(self) -> Catalog:
        """Load every catalog section into one Catalog."""
        ...


def build_catalog(sections: dict[str, dict[str, Any]], source: str = "<memory>") -> Catalog:
    """
    Validate raw catalog sections into a Catalog.

    Entries missing an ``id`` take their key; an entry whose ``id``
    disagrees with its key is kept under the key and logged.
    """
    normalized: dict[str, dict[str, dict]] = {}
    for section in CATALOG_SECTIONS:
        entries = sections.get(section) or {}
        if not isinstance(entries, dict):
            raise CatalogLoadError(source, f"section '{section}' must be a mapping of id to entry")
        normalized[section] = {}
        for key, entry in entries.items():
            if not isinstance(entry, dict):
                raise CatalogLoadError(source, f"{section} entry '{key}' must be a mapping")
            entry = dict(entry)
            entry_id = entry.setdefault("id", key)
            if entry_id != key:
                logger.warning(f"{section} entry '{key}' declares id '{entry_id}'")
            normalized[section][key] = entry

    try:
        return Catalog.model_validate(normalized)
    except ValidationError as e:
        raise CatalogLoadError(source, str(e)) from e


class DirectoryCatalogLoader:
    """
    Reads ``buffs``, ``flags``, ``items``, ``variables`` and ``skills``
    files from one directory.

    Each file may be JSON or YAML. A missing section loads empty.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def load(self) -> Catalog:
        if not self.data_dir.is_dir():
            raise CatalogLoadError(str(self.data_dir), "not a directory")

        sections = {}
        for section in CATALOG_SECTIONS:
            path = self.find_file(section)
            if path is None:
                logger.info(f"No {section} catalog in {self.data_dir}")
                continue
            sections[section] = self._read(path)

        catalog = build_catalog(sections, str(self.data_dir))
        logger.debug(f"Loaded catalog from {self.data_dir}: {catalog.summary()}")
        return catalog

    def find_file(self, section: str) -> Path | None:
        for suffix in SUFFIXES:
            path = self.data_dir / f"{section}{suffix}"
            if path.exists():
                return path
        return None

    def _read(self, path: Path) -> dict:
        try:
            text = path.read_text(encoding="utf-8")
            if path.suffix == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise CatalogLoadError(str(path), str(e)) from e
        return data or {}


class MemoryCatalogLoader:
    """In-memory catalog source for testing."""

    def __init__(self, sections: dict[str, dict[str, Any]] | None = None):
        self.sections = sections or {}

    def load(self) -> Catalog:
        return build_catalog(self.sections)
