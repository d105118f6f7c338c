# tilecache/tile_math.py
import math
from typing import Iterator, Optional, Tuple

from .models import BoundingBox

# Web Mercator 可表示的最大纬度
MAX_LATITUDE = 85.0511


class TileMath:
    """
    瓦片坐标计算工具类（Web Mercator / XYZ）
    """

    @staticmethod
    def _mercator_y(lat: float, n: int) -> float:
        """纬度 -> 未取整的瓦片 y 坐标"""
        lat = max(min(lat, MAX_LATITUDE), -MAX_LATITUDE)
        lat_rad = math.radians(lat)
        return (
            1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi
        ) / 2.0 * n

    @staticmethod
    def latlon_to_tile(lat: float, lon: float, zoom: int) -> Tuple[int, int]:
        """
        经纬度 -> 瓦片坐标 (x, y)

        纬度会被限制在 ±85.0511 之内，结果限制在 [0, 2^zoom) 之内，
        因此不会返回非有限值

        Args:
            lat: 纬度
            lon: 经度
            zoom: 缩放级别
        """
        n = 2 ** zoom
        x_tile = math.floor((lon + 180.0) / 360.0 * n)
        y_tile = math.floor(TileMath._mercator_y(lat, n))

        x_tile = max(0, min(n - 1, x_tile))
        y_tile = max(0, min(n - 1, y_tile))
        return int(x_tile), int(y_tile)

    @staticmethod
    def tile_to_latlon(x: int, y: int, zoom: int) -> Tuple[float, float]:
        """
        瓦片坐标 -> 瓦片左上角经纬度 (lat, lon)
        """
        n = 2 ** zoom
        lon = x / n * 360.0 - 180.0
        lat_rad = math.atan(math.sinh(math.pi * (1 - 2 * y / n)))
        lat = math.degrees(lat_rad)
        return lat, lon

    @staticmethod
    def get_tile_bbox(x: int, y: int, zoom: int) -> Tuple[float, float, float, float]:
        """
        获取单个瓦片的地理范围 (west, south, east, north)
        """
        # 左上角
        north, west = TileMath.tile_to_latlon(x, y, zoom)
        # 右下角（x+1, y+1）
        south, east = TileMath.tile_to_latlon(x + 1, y + 1, zoom)
        return west, south, east, north

    @staticmethod
    def is_tile_in_bounds(x: int, y: int, zoom: int, bbox: Optional[BoundingBox]) -> bool:
        """
        判断瓦片左上角是否落在边界框内，bbox 为 None 时总是返回 True
        """
        if bbox is None:
            return True
        lat, lon = TileMath.tile_to_latlon(x, y, zoom)
        return bbox.south <= lat <= bbox.north and bbox.west <= lon <= bbox.east

    @staticmethod
    def _candidate_window(zoom: int, bbox: BoundingBox) -> Tuple[int, int, int, int]:
        """
        根据边界框估算候选瓦片范围 (min_x, max_x, min_y, max_y)，
        每边多留一个瓦片，最终仍由 is_tile_in_bounds 精确判断
        """
        n = 2 ** zoom
        max_valid_tile = n - 1

        min_x = math.floor((bbox.west + 180.0) / 360.0 * n) - 1
        max_x = math.floor((bbox.east + 180.0) / 360.0 * n) + 1
        # y 随纬度增大而减小
        min_y = math.floor(TileMath._mercator_y(bbox.north, n)) - 1
        max_y = math.floor(TileMath._mercator_y(bbox.south, n)) + 1

        return (
            max(0, min_x),
            min(max_valid_tile, max_x),
            max(0, min_y),
            min(max_valid_tile, max_y),
        )

    @staticmethod
    def iter_tiles_in_bounds(zoom: int, bbox: Optional[BoundingBox]) -> Iterator[Tuple[int, int]]:
        """
        按行优先顺序（先 x 后 y）生成落在边界框内的瓦片坐标

        结果与完整遍历 [0, 2^zoom) x [0, 2^zoom) 并逐个判断相同，
        只是跳过了明显在范围外的行和列

        Args:
            zoom: 缩放级别
            bbox: 边界框，None 表示整个缩放级别
        """
        n = 2 ** zoom
        if bbox is None:
            for x in range(n):
                for y in range(n):
                    yield x, y
            return

        min_x, max_x, min_y, max_y = TileMath._candidate_window(zoom, bbox)
        for x in range(min_x, max_x + 1):
            for y in range(min_y, max_y + 1):
                if TileMath.is_tile_in_bounds(x, y, zoom, bbox):
                    yield x, y

    @staticmethod
    def count_tiles_in_bounds(zoom: int, bbox: Optional[BoundingBox]) -> int:
        """
        统计某缩放级别内的瓦片数量（用于计算进度百分比）
        """
        if bbox is None:
            return 4 ** zoom
        return sum(1 for _ in TileMath.iter_tiles_in_bounds(zoom, bbox))
