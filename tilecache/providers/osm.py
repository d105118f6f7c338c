# tilecache/providers/osm.py

from typing import Optional
from .base import TileProvider, TileProviderType
from .manager import ProviderManager


@ProviderManager.register_provider("osm")
class OSMTileProvider(TileProvider):
    """
    OpenStreetMap 标准 XYZ 瓦片，不支持语言参数
    """

    def __init__(self, locale: Optional[str] = None):
        super().__init__(
            name="osm",
            provider_type=TileProviderType.OSM,
            url_template="https://tile.openstreetmap.org/{z}/{x}/{y}.png",
            min_zoom=0,
            max_zoom=19,
            attribution="© OpenStreetMap contributors",
            locale=locale,
        )

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        return self.url_template.format(z=zoom, x=x, y=y)
