import sys
import threading
import time
from pathlib import Path
from typing import Dict, Iterable, List

import pytest
from loguru import logger

from tilecache.downloader import FailureLedger, TileStore
from tilecache.exceptions import FetchError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"tile-body"


class FakeFetch:
    """
    替代网络下载：记录调用顺序，对 fail_urls 中的 URL 抛出 FetchError
    """

    def __init__(self, fail_urls: Iterable[str] = (), delay: float = 0.0, payload: bytes = PNG_BYTES):
        self.fail_urls = set(fail_urls)
        self.delay = delay
        self.payload = payload
        self.calls: List[str] = []
        self.events: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, url: str) -> bytes:
        with self._lock:
            self.calls.append(url)
            self.events.append(("start", url))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if url in self.fail_urls:
                raise FetchError(url, "HTTP 500")
            return self.payload
        finally:
            with self._lock:
                self.in_flight -= 1
                self.events.append(("end", url))


@pytest.fixture
def fake_fetch():
    return FakeFetch()


@pytest.fixture
def store(tmp_path: Path) -> TileStore:
    return TileStore(tmp_path / "tiles")


@pytest.fixture
def ledger(tmp_path: Path) -> FailureLedger:
    return FailureLedger(tmp_path / "failed_tiles.log")


@pytest.fixture(autouse=True)
def quiet_logger():
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
    yield
    logger.remove()


def snapshot_store(root: Path) -> Dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*")) if p.is_file()
    }
