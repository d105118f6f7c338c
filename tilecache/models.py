# tilecache/models.py

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class TileCoordinate:
    """
    唯一标识一个可缓存的瓦片
    """

    provider: str
    zoom: int
    x: int
    y: int
    locale: Optional[str] = None

    def __post_init__(self):
        if self.zoom < 0:
            raise ValueError(f"无效的缩放级别: {self.zoom}")
        n = 2 ** self.zoom
        if not (0 <= self.x < n and 0 <= self.y < n):
            raise ValueError(
                f"瓦片坐标超出范围: z={self.zoom}, x={self.x}, y={self.y} (范围 0-{n - 1})"
            )

    def key(self) -> Tuple[str, int, int, int, str]:
        """失败日志中用于去重的键"""
        return (self.provider, self.zoom, self.x, self.y, self.locale or "")

    def __str__(self) -> str:
        return f"{self.provider}/{self.zoom}/{self.x}/{self.y}"


@dataclass(frozen=True)
class BoundingBox:
    """
    地理矩形范围（度）。不处理跨越180度经线的情况
    """

    north: float
    south: float
    east: float
    west: float

    def __post_init__(self):
        for name in ("north", "south", "east", "west"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"边界框的 {name} 必须是有限数值: {getattr(self, name)}")
        if not self.north > self.south:
            raise ValueError(f"north ({self.north}) 必须大于 south ({self.south})")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoundingBox":
        """
        从 {north, south, east, west} 字典创建

        Args:
            data: 包含四个边界的字典

        Returns:
            BoundingBox: 边界框

        Raises:
            ValueError: 缺少字段或数值无效
        """
        try:
            return cls(
                north=float(data["north"]),
                south=float(data["south"]),
                east=float(data["east"]),
                west=float(data["west"]),
            )
        except KeyError as e:
            raise ValueError(f"边界框缺少字段: {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"无效的边界框: {e}") from e

    def center(self) -> Tuple[float, float]:
        """返回中心点 (lat, lon)"""
        return (self.north + self.south) / 2.0, (self.east + self.west) / 2.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "north": self.north,
            "south": self.south,
            "east": self.east,
            "west": self.west,
        }
