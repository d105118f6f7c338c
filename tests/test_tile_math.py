import itertools
import math

import pytest

from tilecache.models import BoundingBox
from tilecache.tile_math import TileMath


def test_latlon_to_tile_known_values():
    assert TileMath.latlon_to_tile(0.0, 0.0, 1) == (1, 1)
    assert TileMath.latlon_to_tile(0.0, 0.0, 0) == (0, 0)
    # 伦敦
    assert TileMath.latlon_to_tile(51.5074, -0.1278, 10) == (511, 340)


def test_latlon_to_tile_clamps_out_of_range_input():
    x, y = TileMath.latlon_to_tile(90.0, 180.0, 4)
    assert (x, y) == (15, 0)
    x, y = TileMath.latlon_to_tile(-90.0, -180.0, 4)
    assert (x, y) == (0, 15)


def test_tile_to_latlon_returns_north_west_corner():
    lat, lon = TileMath.tile_to_latlon(0, 0, 0)
    assert lon == -180.0
    assert lat == pytest.approx(85.0511, abs=1e-4)
    assert TileMath.tile_to_latlon(1, 1, 1) == pytest.approx((0.0, 0.0))


@pytest.mark.parametrize("lat,lon", [
    (55.7558, 37.6173),
    (-33.8688, 151.2093),
    (40.7128, -74.0060),
    (0.5, -0.5),
    (84.9, 179.9),
    (-84.9, -179.9),
])
@pytest.mark.parametrize("zoom", [0, 1, 5, 12, 18])
def test_round_trip_within_one_tile(lat, lon, zoom):
    x, y = TileMath.latlon_to_tile(lat, lon, zoom)
    west, south, east, north = TileMath.get_tile_bbox(x, y, zoom)
    tile_width = 360.0 / 2 ** zoom
    corner_lat, corner_lon = TileMath.tile_to_latlon(x, y, zoom)

    assert 0 <= lon - corner_lon < tile_width + 1e-9
    assert south - 1e-9 <= lat <= north + 1e-9
    assert (corner_lat, corner_lon) == (north, west)


def test_is_tile_in_bounds_without_box():
    assert TileMath.is_tile_in_bounds(3, 5, 3, None)


# 瓦片按左上角判断是否在范围内；这些边界框以 (0, 0) 为中心，
# 中心所在瓦片的左上角正好落在框内
@pytest.mark.parametrize("bbox", [
    BoundingBox(north=10, south=-10, east=10, west=-10),
    BoundingBox(north=60, south=-60, east=120, west=-120),
    BoundingBox(north=0.5, south=-0.5, east=0.5, west=-0.5),
])
@pytest.mark.parametrize("zoom", [1, 2, 4, 8, 12])
def test_center_tile_is_in_bounds(bbox, zoom):
    lat, lon = bbox.center()
    x, y = TileMath.latlon_to_tile(lat, lon, zoom)
    assert TileMath.is_tile_in_bounds(x, y, zoom, bbox)


def test_center_tile_of_small_box_can_be_outside():
    # 莫斯科：z=1 时中心所在瓦片 (1, 0) 的左上角是 (85.05, 0)，不在框内
    bbox = BoundingBox(north=56.0, south=55.0, east=38.0, west=37.0)
    lat, lon = bbox.center()
    assert TileMath.latlon_to_tile(lat, lon, 1) == (1, 0)
    assert not TileMath.is_tile_in_bounds(1, 0, 1, bbox)
    assert TileMath.count_tiles_in_bounds(1, bbox) == 0


def test_is_tile_in_bounds_rejects_outside_tile():
    bbox = BoundingBox(north=10, south=-10, east=10, west=-10)
    # z=1 左上角瓦片的角点是 (85.05, -180)
    assert not TileMath.is_tile_in_bounds(0, 0, 1, bbox)


@pytest.mark.parametrize("bbox", [
    BoundingBox(north=56.0, south=55.0, east=38.0, west=37.0),
    BoundingBox(north=90.0, south=-90.0, east=180.0, west=-180.0),
    BoundingBox(north=10, south=-10, east=0, west=-180),
    BoundingBox(north=-70.0, south=-89.0, east=-10.0, west=-50.0),
    BoundingBox(north=0.001, south=0.0, east=0.001, west=0.0),
])
@pytest.mark.parametrize("zoom", [0, 1, 3, 6])
def test_iter_tiles_matches_full_enumeration(bbox, zoom):
    n = 2 ** zoom
    expected = [
        (x, y) for x, y in itertools.product(range(n), range(n))
        if TileMath.is_tile_in_bounds(x, y, zoom, bbox)
    ]
    assert list(TileMath.iter_tiles_in_bounds(zoom, bbox)) == expected
    assert TileMath.count_tiles_in_bounds(zoom, bbox) == len(expected)


def test_iter_tiles_without_box_is_row_major():
    tiles = list(TileMath.iter_tiles_in_bounds(1, None))
    assert tiles == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert TileMath.count_tiles_in_bounds(7, None) == 4 ** 7


def test_bounding_box_requires_north_above_south():
    with pytest.raises(ValueError):
        BoundingBox(north=1, south=2, east=3, west=0)


def test_bounding_box_from_dict():
    bbox = BoundingBox.from_dict({"north": "56", "south": 55, "east": 38, "west": 37})
    assert bbox == BoundingBox(north=56.0, south=55.0, east=38.0, west=37.0)
    with pytest.raises(ValueError):
        BoundingBox.from_dict({"north": 56, "south": 55, "east": 38})


@pytest.mark.parametrize("field", ["north", "south", "east", "west"])
@pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
def test_bounding_box_rejects_non_finite(field, value):
    values = dict(north=10.0, south=-10.0, east=10.0, west=0.0)
    values[field] = value
    with pytest.raises(ValueError):
        BoundingBox(**values)
    with pytest.raises(ValueError):
        BoundingBox.from_dict(values)
