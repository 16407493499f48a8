"""
Fragment catalog loader.

The catalog is a JSON array of fragment records used to seed the store (default: the
sample catalog packaged next to this module). We validate it into typed Pydantic models
so the store can assume a consistent shape.
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from pydantic import Field, TypeAdapter

from echospace.core.env import resolve_project_path
from echospace.domain.models import FragmentCreate

SAMPLE_CATALOG = "sample_fragments.json"


class CatalogEntry(FragmentCreate):
    """A seed record: ids are optional (the store assigns one) and likes may be preset."""

    id: str | None = None
    likes: int = Field(0, ge=0)


_ENTRIES_ADAPTER = TypeAdapter(list[CatalogEntry])


def load_catalog(path: str | Path) -> list[CatalogEntry]:
    """Load and validate a fragment catalog JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return _ENTRIES_ADAPTER.validate_python(payload)


def load_sample_catalog() -> list[CatalogEntry]:
    text = resources.files("echospace.catalog").joinpath(SAMPLE_CATALOG).read_text(encoding="utf-8")
    return _ENTRIES_ADAPTER.validate_python(json.loads(text))
