# tilecache/downloader/__init__.py

from .base import TileDownloader
from .batch import BatchDownloader
from .fetcher import TileFetcher
from .ledger import FailureLedger
from .progress import RunProgress
from .store import TileStore

__all__ = [
    'TileDownloader',
    'BatchDownloader',
    'TileFetcher',
    'FailureLedger',
    'RunProgress',
    'TileStore',
]
