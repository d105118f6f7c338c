# tilecache/downloader/progress.py

import threading
from typing import Callable, Dict, Optional

from loguru import logger

DOWNLOADED = "downloaded"
SKIPPED = "skipped"
FAILED = "failed"

ProgressCallback = Callable[[int, int], None]


class RunProgress:
    """
    一次下载过程（一个缩放级别或一次重试）的进度计数

    每个实例只属于一次运行，不同运行之间互不影响
    """

    def __init__(self, total: int, label: str = "", callback: Optional[ProgressCallback] = None):
        self.total = total
        self.label = label
        self.callback = callback
        self.completed = 0
        self.counts = {DOWNLOADED: 0, SKIPPED: 0, FAILED: 0}
        self._lock = threading.Lock()

    def advance(self, outcome: str) -> int:
        """
        记录一个瓦片的处理结果（成功、跳过或失败）并报告进度

        Args:
            outcome: downloaded / skipped / failed

        Returns:
            int: 已完成的瓦片数
        """
        # 在锁内报告，保证进度单调不减
        with self._lock:
            self.counts[outcome] += 1
            self.completed += 1
            completed = self.completed
            self._report(completed)
        return completed

    def _report(self, completed: int):
        if self.total > 0:
            percent = completed / self.total * 100
        else:
            percent = 100.0
        prefix = f"[{self.label}] " if self.label else ""
        logger.info(f"{prefix}Progress: {percent:.2f}% ({completed}/{self.total})")

        if self.callback:
            try:
                self.callback(completed, self.total)
            except Exception as e:
                # 进度回调出错不影响下载
                logger.warning(f"进度回调失败: {e}")

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.counts, total=self.total, completed=self.completed)
