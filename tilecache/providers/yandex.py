# tilecache/providers/yandex.py

from typing import Optional
from .base import TileProvider, TileProviderType
from .manager import ProviderManager


@ProviderManager.register_provider("yandex")
class YandexTileProvider(TileProvider):
    """
    Yandex 卫星图，locale 通过 lang 参数传递
    """

    def __init__(self, locale: Optional[str] = None):
        super().__init__(
            name="yandex",
            provider_type=TileProviderType.YANDEX,
            url_template="https://core-renderer-tiles.maps.yandex.net/tiles?l=sat&x={x}&y={y}&z={z}",
            min_zoom=0,
            max_zoom=19,
            attribution="© Yandex",
            locale=locale,
        )
        self.lang_param = f"&lang={locale}" if locale else ""

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        return self.url_template.format(x=x, y=y, z=zoom) + self.lang_param
