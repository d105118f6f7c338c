# tilecache/providers/custom.py

from typing import Optional
from .base import TileProvider, TileProviderType
from .bing import BingTileProvider


class CustomTileProvider(TileProvider):
    """
    自定义瓦片提供商
    """

    def __init__(
        self,
        name: str,
        url_template: str,
        subdomains: list = None,
        min_zoom: int = 0,
        max_zoom: int = 23,
        locale: Optional[str] = None,
    ):
        super().__init__(
            name=name,
            provider_type=TileProviderType.CUSTOM,
            url_template=url_template,
            min_zoom=min_zoom,
            max_zoom=max_zoom,
            subdomains=subdomains or [],
            attribution="Custom Provider",
            locale=locale,
        )

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        """
        替换 URL 模板中的占位符
        """
        url = self.url_template

        if "{q}" in url:
            # 需要 QuadKey
            url = url.replace("{q}", BingTileProvider.tile_to_quadkey(x, y, zoom))

        url = url.replace("{z}", str(zoom))
        url = url.replace("{x}", str(x))
        url = url.replace("{y}", str(y))
        url = url.replace("{locale}", self.locale or "")

        if "{s}" in url and self.subdomains:
            url = url.replace("{s}", self._subdomain(x, y))

        return url
