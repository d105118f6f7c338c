# tilecache/providers/bing.py

from typing import Optional
from .base import TileProvider, TileProviderType
from .manager import ProviderManager


@ProviderManager.register_provider("bing")
class BingTileProvider(TileProvider):
    """
    Bing 卫星图，采用 QuadKey
    模板： https://ecn.{s}.tiles.virtualearth.net/tiles/a{q}.png?g=1
    """

    def __init__(self, locale: Optional[str] = None):
        super().__init__(
            name="bing",
            provider_type=TileProviderType.BING,
            url_template="https://ecn.{s}.tiles.virtualearth.net/tiles/a{q}.png?g=1",
            min_zoom=1,
            max_zoom=23,
            subdomains=["t0", "t1", "t2", "t3"],
            attribution="© Microsoft Corporation",
            locale=locale,
        )

    @staticmethod
    def tile_to_quadkey(x: int, y: int, zoom: int) -> str:
        """
        将瓦片坐标转换为QuadKey

        从第 zoom-1 位到第 0 位，每一级取 x、y 的对应位组成一位数字 (bit_x + 2 * bit_y)

        Args:
            x: 瓦片x坐标
            y: 瓦片y坐标
            zoom: 缩放级别

        Returns:
            str: QuadKey
        """
        quadkey = ""
        for i in range(zoom, 0, -1):
            digit = 0
            mask = 1 << (i - 1)
            if x & mask:
                digit += 1
            if y & mask:
                digit += 2
            quadkey += str(digit)
        return quadkey

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        q = self.tile_to_quadkey(x, y, zoom)
        return self.url_template.format(s=self._subdomain(x, y), q=q)
