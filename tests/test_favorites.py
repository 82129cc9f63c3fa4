"""
Tests for the JSON key-value store and favorites persistence
"""

import json

import pytest
from pydantic import ValidationError

from overpasskit.favorites import FAVORITES_KEY, FavoriteLocation, FavoritesStore, KeyValueStore
from overpasskit.models import SearchType
from overpasskit.query import Coordinate


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "nested" / "store.json")


def make_favorite(name="Cafe Central", search_type=SearchType.CAFES):
    return FavoriteLocation.create(name, Coordinate(48.2104, 16.3655), search_type)


def test_favorites_survive_reload(store_path):
    favorite = make_favorite()
    FavoritesStore.at_path(store_path).add(favorite)

    reloaded = FavoritesStore.at_path(store_path)

    assert len(reloaded) == 1
    loaded = reloaded.favorites[0]
    assert loaded == favorite
    assert loaded.coordinate == Coordinate(48.2104, 16.3655)
    assert loaded.type == SearchType.CAFES
    assert loaded.added_date.tzinfo is not None


def test_stored_format(store_path):
    favorite = make_favorite()
    FavoritesStore.at_path(store_path).add(favorite)

    with open(store_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    (entry,) = data[FAVORITES_KEY]
    assert entry["id"] == favorite.id
    assert entry["name"] == "Cafe Central"
    assert entry["type"] == "cafes"
    assert entry["latitude"] == 48.2104


def test_duplicate_ids_are_ignored(store_path):
    store = FavoritesStore.at_path(store_path)
    favorite = make_favorite()
    assert store.add(favorite)
    assert not store.add(favorite)
    assert len(store) == 1


def test_remove_by_location_or_id(store_path):
    store = FavoritesStore.at_path(store_path)
    a = make_favorite("A")
    b = make_favorite("B")
    store.add(a)
    store.add(b)

    assert store.remove(a)
    assert store.remove(b.id)
    assert not store.remove("missing")
    assert FavoritesStore.at_path(store_path).favorites == []


def test_lookup(store_path):
    store = FavoritesStore.at_path(store_path)
    favorite = make_favorite()
    store.add(favorite)
    assert store.is_favorite(favorite.id)
    assert store.get(favorite.id) == favorite
    assert store.get("missing") is None


def test_missing_file_means_no_favorites(store_path):
    assert FavoritesStore.at_path(store_path).favorites == []


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    assert FavoritesStore.at_path(str(path)).favorites == []


def test_unreadable_entries_are_skipped(tmp_path):
    path = tmp_path / "store.json"
    good = make_favorite().model_dump(mode="json")
    path.write_text(json.dumps({FAVORITES_KEY: [good, {"name": "no coordinates"}]}), encoding="utf-8")

    store = FavoritesStore.at_path(str(path))
    assert [f.id for f in store.favorites] == [good["id"]]


def test_other_keys_are_preserved(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"settings": {"units": "metric"}}), encoding="utf-8")

    FavoritesStore.at_path(str(path)).add(make_favorite())

    kv = KeyValueStore(str(path))
    assert kv.get("settings") == {"units": "metric"}
    assert len(kv.get(FAVORITES_KEY)) == 1


def test_key_value_store_defaults(tmp_path):
    kv = KeyValueStore(str(tmp_path / "kv.json"))
    assert kv.get("anything", 5) == 5
    assert kv.set("anything", [1, 2])
    assert kv.get("anything") == [1, 2]


def test_key_value_store_write_failure_returns_false(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    kv = KeyValueStore(str(blocker / "store.json"))
    assert not kv.set("key", "value")


@pytest.mark.parametrize("latitude,longitude", [(91, 0), (0, 181)])
def test_favorite_coordinates_are_validated(latitude, longitude):
    with pytest.raises(ValidationError):
        FavoriteLocation(name="Bad", latitude=latitude, longitude=longitude, type=SearchType.CUSTOM)


def test_favorites_get_unique_ids():
    assert make_favorite().id != make_favorite().id
