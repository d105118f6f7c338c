# tilecache/providers/__init__.py

from .base import TileProvider, TileProviderType
from .manager import ProviderManager, create_provider
from .osm import OSMTileProvider
from .bing import BingTileProvider
from .google import GoogleTileProvider
from .yandex import YandexTileProvider
from .custom import CustomTileProvider

__all__ = [
    'TileProvider',
    'TileProviderType',
    'ProviderManager',
    'create_provider',
    'OSMTileProvider',
    'BingTileProvider',
    'GoogleTileProvider',
    'YandexTileProvider',
    'CustomTileProvider',
]
