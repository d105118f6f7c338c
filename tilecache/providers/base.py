# tilecache/providers/base.py

from enum import Enum
from typing import List, Optional


class TileProviderType(Enum):
    """
    瓦片提供商类型枚举
    """
    OSM = "osm"
    BING = "bing"
    GOOGLE = "google"
    YANDEX = "yandex"
    CUSTOM = "custom"


class TileProvider:
    """
    瓦片提供商基类，具体的 OSM / Bing 等继承它

    实例创建后不再修改（语言参数在创建时确定），一次下载中的所有瓦片共用一个实例
    """

    def __init__(
        self,
        name: str,
        provider_type: TileProviderType,
        url_template: str,
        min_zoom: int,
        max_zoom: int,
        subdomains: Optional[List[str]] = None,
        attribution: str = "",
        locale: Optional[str] = None,
    ):
        """
        初始化瓦片提供商

        Args:
            name: 提供商名称
            provider_type: 提供商类型
            url_template: URL模板
            min_zoom: 最小缩放级别
            max_zoom: 最大缩放级别
            subdomains: 子域名列表
            attribution: 版权信息
            locale: 语言参数，如 ru, en
        """
        self.name = name
        self.provider_type = provider_type
        self.url_template = url_template
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.subdomains = subdomains or []
        self.attribution = attribution
        self.locale = locale

    def get_tile_url(self, x: int, y: int, zoom: int) -> str:
        """
        获取瓦片URL

        Args:
            x: 瓦片x坐标
            y: 瓦片y坐标
            zoom: 缩放级别

        Returns:
            str: 瓦片URL
        """
        raise NotImplementedError

    def supports_zoom(self, zoom: int) -> bool:
        return self.min_zoom <= zoom <= self.max_zoom

    def _subdomain(self, x: int, y: int) -> str:
        # 按坐标轮询子域名
        if not self.subdomains:
            return ""
        return self.subdomains[(x + y) % len(self.subdomains)]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} locale={self.locale!r}>"
