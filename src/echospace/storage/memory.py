"""
In-memory fragment store.

Holds frozen `Fragment` models keyed by id. Every read returns a fresh list (a snapshot),
so callers can hand it to the proximity/AR code without worrying about concurrent writes.
The HTTP server may call in from a threadpool, so mutations take a lock.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Iterable

from echospace.catalog.loader import CatalogEntry, load_catalog, load_sample_catalog
from echospace.config.settings import Settings
from echospace.core.geo import km_to_m
from echospace.core.spatial_index import SpatialGridIndex
from echospace.domain.categories import same_category
from echospace.domain.models import Fragment, FragmentCreate, FragmentUpdate

logger = logging.getLogger(__name__)


class FragmentNotFound(KeyError):
    def __init__(self, fragment_id: str):
        super().__init__(fragment_id)
        self.fragment_id = fragment_id

    def __str__(self) -> str:
        return f"Fragment not found: {self.fragment_id}"


def matches_query(fragment: Fragment, query: str) -> bool:
    """Case-insensitive substring match over title, content, tags and location name."""
    if not query:
        return True
    q = query.lower()
    return (
        q in fragment.title.lower()
        or q in fragment.content.lower()
        or any(q in tag.lower() for tag in fragment.tags)
        or q in fragment.location_name.lower()
    )


class InMemoryFragmentStore:
    def __init__(self, *, index_cell_size_deg: float = 0.01):
        self._lock = threading.Lock()
        self._fragments: dict[str, Fragment] = {}
        self._cell_size_deg = float(index_cell_size_deg)
        self._index: SpatialGridIndex[str] | None = None

    def __len__(self) -> int:
        return len(self._fragments)

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    def seed(self, entries: Iterable[CatalogEntry]) -> int:
        count = 0
        with self._lock:
            for entry in entries:
                data = entry.model_dump()
                fragment_id = data.pop("id", None) or self._new_id()
                if fragment_id in self._fragments:
                    raise ValueError(f"Duplicate fragment id in catalog: {fragment_id}")
                self._fragments[fragment_id] = Fragment(**data, id=fragment_id)
                count += 1
            self._index = None
        return count

    def list_all(self) -> list[Fragment]:
        with self._lock:
            return list(self._fragments.values())

    def get(self, fragment_id: str) -> Fragment:
        with self._lock:
            fragment = self._fragments.get(fragment_id)
        if fragment is None:
            raise FragmentNotFound(fragment_id)
        return fragment

    def create(self, payload: FragmentCreate) -> Fragment:
        fragment = Fragment(**payload.model_dump(), id=self._new_id(), likes=0)
        with self._lock:
            self._fragments[fragment.id] = fragment
            self._index = None
        logger.info("Created fragment %s (%s)", fragment.id, fragment.category)
        return fragment

    def update(self, fragment_id: str, patch: FragmentUpdate) -> Fragment:
        changes = patch.changes()
        with self._lock:
            existing = self._fragments.get(fragment_id)
            if existing is None:
                raise FragmentNotFound(fragment_id)
            if "likes" in changes and changes["likes"] < existing.likes:
                raise ValueError("likes cannot decrease")
            updated = Fragment.model_validate({**existing.model_dump(), **changes})
            self._fragments[fragment_id] = updated
            if "latitude" in changes or "longitude" in changes:
                self._index = None
        return updated

    def like(self, fragment_id: str) -> Fragment:
        with self._lock:
            existing = self._fragments.get(fragment_id)
            if existing is None:
                raise FragmentNotFound(fragment_id)
            updated = existing.model_copy(update={"likes": existing.likes + 1})
            self._fragments[fragment_id] = updated
        return updated

    def delete(self, fragment_id: str) -> None:
        with self._lock:
            if self._fragments.pop(fragment_id, None) is None:
                raise FragmentNotFound(fragment_id)
            self._index = None
        logger.info("Deleted fragment %s", fragment_id)

    def search(self, query: str = "", category: str | None = None) -> list[Fragment]:
        return [
            f
            for f in self.list_all()
            if matches_query(f, query) and same_category(f.category, category)
        ]

    def within_radius_km(self, lat: float, lng: float, radius_km: float) -> list[Fragment]:
        """Server-side radius query; the radius is in km and compared in meters."""
        with self._lock:
            if self._index is None:
                self._index = SpatialGridIndex(
                    list(self._fragments),
                    get_latlng=lambda fid: (self._fragments[fid].latitude, self._fragments[fid].longitude),
                    cell_size_deg=self._cell_size_deg,
                )
            index = self._index
        hits = index.query_within(lat=lat, lng=lng, radius_m=km_to_m(radius_km))
        with self._lock:
            # The index holds ids; likes and text may have changed since it was built.
            current = [self._fragments.get(fid) for fid, _ in hits]
        return [f for f in current if f is not None]


def build_store(settings: Settings) -> InMemoryFragmentStore:
    store = InMemoryFragmentStore(index_cell_size_deg=settings.storage.index_cell_size_deg)
    if settings.catalog.path:
        count = store.seed(load_catalog(settings.catalog.path))
        logger.info("Seeded %d fragments from %s", count, settings.catalog.path)
    elif settings.storage.seed_sample_data:
        count = store.seed(load_sample_catalog())
        logger.info("Seeded %d sample fragments", count)
    return store
