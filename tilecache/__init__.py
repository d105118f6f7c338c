# tilecache/__init__.py

from .models import BoundingBox, TileCoordinate
from .tile_math import TileMath
from .providers import ProviderManager, create_provider
from .downloader import BatchDownloader, FailureLedger, TileDownloader, TileStore

__version__ = "0.1.0"

__all__ = [
    'BoundingBox',
    'TileCoordinate',
    'TileMath',
    'ProviderManager',
    'create_provider',
    'BatchDownloader',
    'FailureLedger',
    'TileDownloader',
    'TileStore',
]
