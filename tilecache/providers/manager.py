# tilecache/providers/manager.py

from functools import partial
from typing import Callable, Dict, List, Optional

from ..exceptions import UnsupportedProviderError
from .base import TileProvider

ProviderFactory = Callable[..., TileProvider]


class ProviderManager:
    """
    瓦片提供商注册表：名称 -> 工厂（接受 locale 参数）

    新的提供商通过 register_provider 注册，调用方无需修改
    """

    _providers: Dict[str, ProviderFactory] = {}

    @classmethod
    def register_provider(cls, name: str, factory: Optional[ProviderFactory] = None):
        """
        注册瓦片提供商，也可以作为类装饰器使用

        Args:
            name: 提供商名称
            factory: 接受 locale 关键字参数、返回 TileProvider 的可调用对象
        """
        def decorator(f: ProviderFactory) -> ProviderFactory:
            cls._providers[name.lower()] = f
            return f

        if factory is None:
            return decorator
        return decorator(factory)

    @classmethod
    def unregister_provider(cls, name: str):
        cls._providers.pop(name.lower(), None)

    @classmethod
    def create_provider(cls, name: str, locale: Optional[str] = None) -> TileProvider:
        """
        创建瓦片提供商实例

        Args:
            name: 提供商名称
            locale: 语言参数

        Returns:
            TileProvider: 瓦片提供商实例

        Raises:
            UnsupportedProviderError: 未知的瓦片提供商
        """
        factory = cls._providers.get((name or "").lower())
        if factory is None:
            raise UnsupportedProviderError(name)
        return factory(locale=locale)

    @classmethod
    def list_providers(cls) -> List[str]:
        """
        列出所有已注册的瓦片提供商

        Returns:
            List[str]: 瓦片提供商名称列表
        """
        return sorted(cls._providers.keys())

    @classmethod
    def provider_info(cls, name: str) -> Dict:
        p = cls.create_provider(name)
        return {
            "name": p.name,
            "type": p.provider_type.value,
            "min_zoom": p.min_zoom,
            "max_zoom": p.max_zoom,
            "attribution": p.attribution,
        }

    @classmethod
    def create_custom_provider(
        cls,
        name: str,
        url_template: str,
        subdomains: Optional[list] = None,
        min_zoom: int = 0,
        max_zoom: int = 23,
    ) -> TileProvider:
        """
        注册自定义瓦片提供商并返回一个不带 locale 的实例

        Args:
            name: 提供商名称
            url_template: URL模板，支持 {z} {x} {y} {q} {s} {locale}
            subdomains: 子域名列表
            min_zoom: 最小缩放级别
            max_zoom: 最大缩放级别

        Returns:
            TileProvider: 自定义瓦片提供商实例
        """
        from .custom import CustomTileProvider

        factory = partial(
            CustomTileProvider,
            name=name,
            url_template=url_template,
            subdomains=subdomains or [],
            min_zoom=min_zoom,
            max_zoom=max_zoom,
        )
        cls.register_provider(name, factory)
        return factory(locale=None)


def create_provider(name: str, locale: Optional[str] = None) -> TileProvider:
    return ProviderManager.create_provider(name, locale)
