# tilecache/downloader/batch.py

from typing import Dict, Optional

from loguru import logger

from ..config import DownloadConfig
from ..models import BoundingBox
from .base import TileDownloader
from .fetcher import TileFetcher
from .ledger import FailureLedger
from .progress import ProgressCallback
from .store import TileStore


class BatchDownloader:
    """
    批量下载工具：提供高级接口
    """

    @staticmethod
    def _make_downloader(
        provider_name: Optional[str],
        config: DownloadConfig,
        progress_callback: Optional[ProgressCallback] = None,
        install_signal_handlers: bool = False,
    ) -> TileDownloader:
        dl = TileDownloader(
            provider_name,
            store=TileStore(config.cache_dir),
            ledger=FailureLedger(config.failed_log),
            locale=config.locale,
            concurrency=config.concurrency,
            fetch=TileFetcher(timeout=config.timeout, retries=config.retries, user_agent=config.user_agent),
            progress_callback=progress_callback,
            strategy=config.strategy,
        )
        if install_signal_handlers:
            dl.install_signal_handlers()
        return dl

    @staticmethod
    def download_zoom_range(
        provider_name: str,
        zoom_start: int,
        zoom_end: Optional[int] = None,
        bbox: Optional[BoundingBox] = None,
        config: Optional[DownloadConfig] = None,
        retry_first: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
        install_signal_handlers: bool = False,
    ) -> Dict[str, int]:
        """
        下载缩放范围内的瓦片

        Args:
            provider_name: 瓦片提供商名称
            zoom_start: 起始缩放级别
            zoom_end: 结束缩放级别，默认等于 zoom_start
            bbox: 边界框，None 表示整个缩放级别
            config: 下载配置
            retry_first: 下载前先重试失败日志中的瓦片
            progress_callback: 进度回调 (completed, total)
            install_signal_handlers: 是否处理 Ctrl+C

        Returns:
            Dict[str, int]: 下载统计信息
        """
        config = config or DownloadConfig()
        dl = BatchDownloader._make_downloader(
            provider_name, config, progress_callback, install_signal_handlers
        )
        if retry_first:
            dl.retry_failed()
        stats = dl.download_zoom_range(zoom_start, zoom_end, bbox)
        if stats["failed"]:
            logger.warning(f"{stats['failed']} 个瓦片下载失败，已记录到 {config.failed_log}")
        return stats

    @staticmethod
    def retry_failed(
        config: Optional[DownloadConfig] = None,
        progress_callback: Optional[ProgressCallback] = None,
        install_signal_handlers: bool = False,
    ) -> Dict[str, int]:
        """
        只重试失败日志中的瓦片

        Returns:
            Dict[str, int]: 重试统计信息
        """
        config = config or DownloadConfig()
        dl = BatchDownloader._make_downloader(
            None, config, progress_callback, install_signal_handlers
        )
        return dl.retry_failed()
