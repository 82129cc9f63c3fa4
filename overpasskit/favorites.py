"""
Favorite locations

Favorites persist as a JSON list under one key of a small JSON-file
key-value store. Load and save failures are logged and never raised, so
a broken store degrades to an empty favorites list.
"""

import json
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import SearchType
from .query.bounding_box import Coordinate


FAVORITES_KEY = "favorites"


class KeyValueStore:
    """JSON object on disk, rewritten atomically on every set"""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self.path}: top level is not an object")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """Store value under key; returns False when the file could not be written"""
        with self._lock:
            data = self._read_all()
            data[key] = value
            tmp_path = f"{self.path}.tmp"
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except (OSError, TypeError, ValueError) as e:
                logger.warning(f"Failed to save store {self.path}: {e}")
                return False
        return True


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FavoriteLocation(BaseModel):
    """A saved place; identity is the id alone"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    type: SearchType
    added_date: datetime = Field(default_factory=_utc_now)

    @classmethod
    def create(cls, name: str, coordinate: Coordinate, search_type: SearchType) -> "FavoriteLocation":
        return cls(
            name=name,
            latitude=coordinate.latitude,
            longitude=coordinate.longitude,
            type=search_type,
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


class FavoritesStore:
    """
    Favorite locations backed by a KeyValueStore

    Loaded once at construction, saved after every mutation.
    """

    def __init__(self, store: KeyValueStore, key: str = FAVORITES_KEY):
        self.store = store
        self.key = key
        self._favorites: List[FavoriteLocation] = self._load()

    @classmethod
    def at_path(cls, path: str) -> "FavoritesStore":
        return cls(KeyValueStore(path))

    def _load(self) -> List[FavoriteLocation]:
        raw = self.store.get(self.key, [])
        if not isinstance(raw, list):
            logger.warning(f"Ignoring favorites under {self.key!r}: expected a list")
            return []
        favorites = []
        for item in raw:
            try:
                favorites.append(FavoriteLocation.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable favorite: {e.error_count()} errors")
        logger.debug(f"Loaded {len(favorites)} favorites")
        return favorites

    def _save(self) -> None:
        self.store.set(self.key, [f.model_dump(mode="json") for f in self._favorites])

    @property
    def favorites(self) -> List[FavoriteLocation]:
        return list(self._favorites)

    def add(self, location: FavoriteLocation) -> bool:
        """Append location unless one with the same id exists; returns whether it was added"""
        if self.is_favorite(location):
            return False
        self._favorites.append(location)
        self._save()
        logger.info(f"Added favorite {location.name!r}")
        return True

    def remove(self, location_or_id) -> bool:
        """Remove by FavoriteLocation or id; returns whether anything was removed"""
        location_id = location_or_id.id if isinstance(location_or_id, FavoriteLocation) else str(location_or_id)
        remaining = [f for f in self._favorites if f.id != location_id]
        removed = len(remaining) != len(self._favorites)
        self._favorites = remaining
        self._save()
        if removed:
            logger.info(f"Removed favorite {location_id}")
        return removed

    def is_favorite(self, location_or_id) -> bool:
        location_id = location_or_id.id if isinstance(location_or_id, FavoriteLocation) else str(location_or_id)
        return any(f.id == location_id for f in self._favorites)

    def get(self, location_id: str) -> Optional[FavoriteLocation]:
        for favorite in self._favorites:
            if favorite.id == location_id:
                return favorite
        return None

    def __len__(self) -> int:
        return len(self._favorites)
