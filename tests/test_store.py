import os
from concurrent.futures import ThreadPoolExecutor

import pytest

from tilecache.exceptions import StoreWriteError
from tilecache.models import TileCoordinate

from conftest import PNG_BYTES


def test_path_layout(store):
    coord = TileCoordinate("osm", 3, 2, 4)
    assert store.path_for(coord) == store.root / "osm" / "3" / "2" / "4.png"


def test_save_and_exists(store):
    coord = TileCoordinate("osm", 3, 2, 4)
    assert not store.exists(coord)
    assert store.read(coord) is None

    store.save(coord, PNG_BYTES)

    assert store.exists(coord)
    assert store.read(coord) == PNG_BYTES
    # 没有残留的临时文件
    assert os.listdir(store.path_for(coord).parent) == ["4.png"]


def test_overwrite_keeps_store_consistent(store):
    coord = TileCoordinate("osm", 1, 0, 0)
    store.save(coord, b"first")
    store.save(coord, b"second")
    assert store.read(coord) == b"second"


def test_empty_payload_rejected(store):
    coord = TileCoordinate("osm", 1, 0, 0)
    with pytest.raises(StoreWriteError):
        store.save(coord, b"")
    assert not store.exists(coord)


def test_failed_write_leaves_no_partial_tile(store, monkeypatch):
    coord = TileCoordinate("osm", 2, 1, 1)

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("tilecache.downloader.utils.os.replace", broken_replace)
    with pytest.raises(StoreWriteError):
        store.save(coord, PNG_BYTES)

    assert not store.exists(coord)
    assert os.listdir(store.path_for(coord).parent) == []


def test_concurrent_saves_into_same_directory(store):
    coords = [TileCoordinate("osm", 5, 7, y) for y in range(32)]
    with ThreadPoolExecutor(max_workers=16) as executor:
        list(executor.map(lambda c: store.save(c, PNG_BYTES), coords))
    assert all(store.exists(c) for c in coords)


def test_tile_coordinate_validation():
    with pytest.raises(ValueError):
        TileCoordinate("osm", 2, 4, 0)
    with pytest.raises(ValueError):
        TileCoordinate("osm", -1, 0, 0)
    assert TileCoordinate("osm", 0, 0, 0).key() == ("osm", 0, 0, 0, "")
