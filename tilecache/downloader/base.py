# tilecache/downloader/base.py

import signal
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from itertools import islice
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from loguru import logger

from ..exceptions import UnsupportedProviderError
from ..models import BoundingBox, TileCoordinate
from ..providers import ProviderManager, TileProvider
from ..tile_math import TileMath
from .fetcher import TileFetcher
from .ledger import FailureLedger
from .progress import DOWNLOADED, FAILED, SKIPPED, ProgressCallback, RunProgress
from .store import TileStore

STRATEGIES = ("batch", "window")

Task = Tuple[TileCoordinate, TileProvider]


class TileDownloader:
    """
    核心下载器：枚举缩放级别内的瓦片，跳过已缓存的瓦片，
    以固定并发数下载其余瓦片，失败的瓦片写入失败日志

    strategy="batch" 时每批恰好 concurrency 个瓦片，整批结束后才开始下一批；
    strategy="window" 时任何一个瓦片结束后立即补充下一个
    """

    def __init__(
        self,
        provider_name: Optional[str],
        store: Optional[TileStore] = None,
        ledger: Optional[FailureLedger] = None,
        locale: Optional[str] = "ru",
        concurrency: int = 6,
        fetch: Optional[Callable[[str], bytes]] = None,
        progress_callback: Optional[ProgressCallback] = None,
        strategy: str = "batch",
        stop_event: Optional[threading.Event] = None,
        output_dir: Union[str, Path] = "tiles",
        failed_log: Union[str, Path] = "failed_tiles.log",
    ):
        """
        初始化下载器

        Args:
            provider_name: 瓦片提供商名称，只做重试时可以为 None
            store: 瓦片缓存，默认使用 output_dir
            ledger: 失败日志，默认使用 failed_log
            locale: 语言参数
            concurrency: 最大并发下载数
            fetch: 下载函数 url -> bytes，默认使用 TileFetcher
            progress_callback: 进度回调 (completed, total)
            strategy: batch 或 window
            stop_event: 设置后不再开始新的批次

        Raises:
            UnsupportedProviderError: 未知的瓦片提供商
            ValueError: 参数无效
        """
        if concurrency < 1:
            raise ValueError(f"并发数必须大于0: {concurrency}")
        if strategy not in STRATEGIES:
            raise ValueError(f"未知的调度策略: {strategy}")
        if locale and "," in locale:
            raise ValueError(f"locale 中不能包含逗号: {locale!r}")

        # 未知瓦片源在任何下载开始前失败
        self.provider: Optional[TileProvider] = None
        if provider_name is not None:
            self.provider = ProviderManager.create_provider(provider_name, locale)
        self.locale = locale
        self.store = store or TileStore(output_dir)
        self.ledger = ledger or FailureLedger(failed_log)
        self.concurrency = concurrency
        self.fetch = fetch or TileFetcher()
        self.progress_callback = progress_callback
        self.strategy = strategy
        self.stop_event = stop_event or threading.Event()

        self.statistics = {DOWNLOADED: 0, SKIPPED: 0, FAILED: 0, "total": 0}

        logger.info(
            f"初始化下载器: provider={provider_name}, locale={locale}, "
            f"concurrency={concurrency}, strategy={strategy}, output_dir={self.store.root}"
        )

    def install_signal_handlers(self):
        """
        收到 SIGINT/SIGTERM 时停止开始新的批次，正在下载的瓦片会正常结束
        """
        def signal_handler(sig, frame):
            logger.warning(f"收到信号 {sig}，当前批次结束后停止")
            self.stop_event.set()

        try:
            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)
        except ValueError as e:
            # 只能在主线程注册
            logger.warning(f"注册信号处理失败: {e}")

    def _process_tile(
        self,
        coord: TileCoordinate,
        provider: TileProvider,
        progress: RunProgress,
        on_failure: Callable[[TileCoordinate], None],
    ) -> str:
        """
        处理单个瓦片：已缓存则跳过，否则下载并保存；失败只记录，不向外抛出
        """
        if self.store.exists(coord):
            logger.debug(f"[跳过] 已存在: {coord}")
            outcome = SKIPPED
        else:
            try:
                url = provider.get_tile_url(coord.x, coord.y, coord.zoom)
                data = self.fetch(url)
                self.store.save(coord, data)
                logger.debug(f"下载成功: {coord} ({len(data)} 字节)")
                outcome = DOWNLOADED
            except Exception as e:
                logger.error(f"瓦片处理失败: {coord} - {e}")
                on_failure(coord)
                outcome = FAILED

        progress.advance(outcome)
        return outcome

    def _run_tasks(
        self,
        tasks: Iterable[Task],
        progress: RunProgress,
        on_failure: Callable[[TileCoordinate], None],
    ) -> int:
        """
        按调度策略执行任务

        Returns:
            int: 已开始的任务数（按枚举顺序，被停止时后面的任务未开始）
        """
        tasks = iter(tasks)
        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="tile") as executor:
            if self.strategy == "window":
                return self._run_window(executor, tasks, progress, on_failure)
            return self._run_batches(executor, tasks, progress, on_failure)

    def _run_batches(self, executor, tasks: Iterator[Task], progress, on_failure) -> int:
        dispatched = 0
        while not self.stop_event.is_set():
            batch = list(islice(tasks, self.concurrency))
            if not batch:
                break
            futures = [
                executor.submit(self._process_tile, coord, provider, progress, on_failure)
                for coord, provider in batch
            ]
            dispatched += len(batch)
            # 整批结束后才开始下一批
            wait(futures)
            for future in futures:
                # 失败日志写入错误等不可恢复的错误在这里抛出
                future.result()
        return dispatched

    def _run_window(self, executor, tasks: Iterator[Task], progress, on_failure) -> int:
        dispatched = 0
        in_flight = set()
        try:
            for coord, provider in tasks:
                if self.stop_event.is_set():
                    break
                if len(in_flight) >= self.concurrency:
                    done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                    self._raise_errors(done)
                in_flight.add(executor.submit(self._process_tile, coord, provider, progress, on_failure))
                dispatched += 1
        finally:
            done, _ = wait(in_flight)
        self._raise_errors(done)
        return dispatched

    @staticmethod
    def _raise_errors(futures: Iterable[Future]):
        for future in futures:
            future.result()

    def _merge_statistics(self, progress: RunProgress):
        snapshot = progress.snapshot()
        for key in (DOWNLOADED, SKIPPED, FAILED):
            self.statistics[key] += snapshot[key]
        self.statistics["total"] += snapshot["total"]

    def download_zoom(self, zoom: int, bbox: Optional[BoundingBox] = None) -> Dict[str, int]:
        """
        下载一个缩放级别内所有缺失的瓦片

        Args:
            zoom: 缩放级别
            bbox: 边界框，None 表示整个缩放级别

        Returns:
            Dict[str, int]: 本级别的统计信息
        """
        if self.provider is None:
            raise ValueError("没有指定瓦片源，只能执行重试")
        if not self.provider.supports_zoom(zoom):
            logger.warning(
                f"zoom {zoom} 超出 {self.provider.name} 的范围 "
                f"[{self.provider.min_zoom}, {self.provider.max_zoom}]"
            )

        total = TileMath.count_tiles_in_bounds(zoom, bbox)
        logger.info(f"Starting download for zoom level {zoom}: {total} tiles")
        progress = RunProgress(total, label=f"z{zoom}", callback=self.progress_callback)

        tasks = (
            (TileCoordinate(self.provider.name, zoom, x, y, self.locale), self.provider)
            for x, y in TileMath.iter_tiles_in_bounds(zoom, bbox)
        )
        self._run_tasks(tasks, progress, self.ledger.append)

        self._merge_statistics(progress)
        stats = progress.snapshot()
        logger.info(
            f"Completed download for zoom level {zoom}: downloaded={stats[DOWNLOADED]}, "
            f"skipped={stats[SKIPPED]}, failed={stats[FAILED]}"
        )
        return stats

    def download_zoom_range(
        self,
        zoom_start: int,
        zoom_end: Optional[int] = None,
        bbox: Optional[BoundingBox] = None,
    ) -> Dict[str, int]:
        """
        按缩放级别从小到大依次下载

        Args:
            zoom_start: 起始缩放级别
            zoom_end: 结束缩放级别（包含），默认等于 zoom_start
            bbox: 边界框

        Returns:
            Dict[str, int]: 下载统计信息
        """
        if self.provider is None:
            raise ValueError("没有指定瓦片源，只能执行重试")
        if zoom_end is None:
            zoom_end = zoom_start
        if zoom_start < 0 or zoom_end < zoom_start:
            raise ValueError(f"无效的缩放范围: {zoom_start}-{zoom_end}")

        logger.info(
            f"Starting download for provider: {self.provider.name}, zoom range: {zoom_start}-{zoom_end}, "
            f"bounds: {bbox.to_dict() if bbox else 'none'}, locale: {self.locale}, "
            f"concurrency: {self.concurrency}"
        )
        for zoom in range(zoom_start, zoom_end + 1):
            if self.stop_event.is_set():
                logger.warning(f"下载已停止，跳过缩放级别 {zoom}-{zoom_end}")
                break
            self.download_zoom(zoom, bbox)
        return self.get_statistics()

    def _provider_for(self, coord: TileCoordinate, cache: Dict) -> TileProvider:
        key = (coord.provider, coord.locale)
        if key not in cache:
            cache[key] = ProviderManager.create_provider(coord.provider, coord.locale)
        return cache[key]

    def retry_failed(self) -> Dict[str, int]:
        """
        重试失败日志中的所有瓦片

        每条记录使用自己的 provider 和 locale，与当前下载器的瓦片源无关。
        再次失败的记录写回失败日志，全部成功则删除失败日志

        Returns:
            Dict[str, int]: 本次重试的统计信息

        Raises:
            LedgerIOError: 失败日志无法读取
        """
        records = self.ledger.drain_all()
        if not records:
            logger.info("失败日志为空，无需重试")
            return {DOWNLOADED: 0, SKIPPED: 0, FAILED: 0, "total": 0, "completed": 0}

        logger.info(f"开始重试 {len(records)} 个失败的瓦片: {self.ledger.path}")
        progress = RunProgress(len(records), label="retry", callback=self.progress_callback)

        failed_again: List[TileCoordinate] = []
        failed_lock = threading.Lock()

        def on_failure(coord: TileCoordinate):
            with failed_lock:
                failed_again.append(coord)

        tasks = []
        providers: Dict = {}
        for coord in records:
            try:
                tasks.append((coord, self._provider_for(coord, providers)))
            except UnsupportedProviderError as e:
                # 保留记录，等待该瓦片源重新可用
                logger.error(f"无法重试 {coord}: {e}")
                on_failure(coord)
                progress.advance(FAILED)

        dispatched = self._run_tasks(tasks, progress, on_failure)

        # 被停止时未开始的记录也要保留
        remaining = failed_again + [coord for coord, _ in tasks[dispatched:]]
        if remaining:
            self.ledger.replace(remaining)
        else:
            self.ledger.clear()

        self._merge_statistics(progress)
        stats = progress.snapshot()
        logger.info(
            f"重试完成: downloaded={stats[DOWNLOADED]}, skipped={stats[SKIPPED]}, "
            f"failed={stats[FAILED]}, remaining={len(remaining)}"
        )
        return stats

    def get_statistics(self) -> Dict[str, int]:
        """
        获取下载统计信息

        Returns:
            Dict[str, int]: 下载统计信息
        """
        return dict(self.statistics)
