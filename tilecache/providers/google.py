# tilecache/providers/google.py

from typing import Optional
from .base import TileProvider, TileProviderType
from .manager import ProviderManager


@ProviderManager.register_provider("google")
class GoogleTileProvider(TileProvider):
    """
    Google 混合图层（卫星 + 标注），locale 通过 hl 参数传递
    """

    def __init__(self, locale: Optional[str] = None):
        super().__init__(
            name="google",
            provider_type=TileProviderType.GOOGLE,
            url_template="https://mt.google.com/vt/lyrs=y&x={x}&y={y}&z={z}",
            min_zoom=0,
            max_zoom=22,
            attribution="© Google",
            locale=locale,
        )
        self.lang_param = f"&hl={locale}" if locale else ""

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        return self.url_template.format(x=x, y=y, z=zoom) + self.lang_param
