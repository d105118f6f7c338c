# tilecache/downloader/ledger.py

import os
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple, Union

from loguru import logger

from ..exceptions import LedgerIOError
from ..models import TileCoordinate
from .utils import atomic_write, ensure_directory


def format_record(coord: TileCoordinate) -> str:
    """
    序列化为一行：provider,zoom,x,y,locale（没有 locale 时最后一列为空）
    """
    locale = coord.locale or ""
    if "," in coord.provider or "," in locale:
        raise ValueError(f"provider 和 locale 中不能包含逗号: {coord.provider!r}, {locale!r}")
    return f"{coord.provider},{coord.zoom},{coord.x},{coord.y},{locale}"


def parse_record(line: str, line_no: int = 0) -> TileCoordinate:
    """
    解析一行失败记录，兼容旧格式 provider,zoom,x,y

    Raises:
        LedgerIOError: 格式错误
    """
    fields = line.split(",")
    if len(fields) not in (4, 5):
        raise LedgerIOError(f"失败日志第 {line_no} 行格式错误: {line!r}")
    try:
        provider = fields[0]
        zoom, x, y = int(fields[1]), int(fields[2]), int(fields[3])
        locale = fields[4] if len(fields) == 5 and fields[4] else None
        return TileCoordinate(provider=provider, zoom=zoom, x=x, y=y, locale=locale)
    except ValueError as e:
        raise LedgerIOError(f"失败日志第 {line_no} 行无法解析: {line!r} ({e})") from e


class FailureLedger:
    """
    下载失败的瓦片记录，每行一条，可被多个下载线程同时追加

    语义上是集合：同一个坐标只记录一次
    """

    def __init__(self, path: Union[str, Path] = "failed_tiles.log"):
        self.path = Path(path)
        self._lock = threading.Lock()
        # 已记录的键；文件被其它进程或实例修改后重新加载
        self._recorded: Optional[Set[Tuple]] = None
        self._loaded_stamp: Optional[Tuple[int, int, int]] = None

    def _stamp(self) -> Optional[Tuple[int, int, int]]:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise LedgerIOError(f"无法读取失败日志 {self.path}: {e}") from e
        return st.st_ino, st.st_mtime_ns, st.st_size

    def _read_records(self) -> List[TileCoordinate]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise LedgerIOError(f"无法读取失败日志 {self.path}: {e}") from e

        records = []
        seen = set()
        for line_no, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            coord = parse_record(line, line_no)
            if coord.key() in seen:
                continue
            seen.add(coord.key())
            records.append(coord)
        return records

    def append(self, coord: TileCoordinate):
        """
        追加一条失败记录，已存在的坐标会被忽略

        Args:
            coord: 失败的瓦片坐标

        Raises:
            LedgerIOError: 失败日志无法读取或写入
        """
        line = format_record(coord) + "\n"
        with self._lock:
            stamp = self._stamp()
            if self._recorded is None or stamp != self._loaded_stamp:
                self._recorded = {c.key() for c in self._read_records()}
                self._loaded_stamp = stamp
            if coord.key() in self._recorded:
                logger.debug(f"失败记录已存在，跳过: {coord}")
                return

            try:
                ensure_directory(self.path.parent)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line)
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise LedgerIOError(f"无法写入失败日志 {self.path}: {e}") from e
            self._recorded.add(coord.key())
            self._loaded_stamp = self._stamp()

    def drain_all(self) -> List[TileCoordinate]:
        """
        读取所有失败记录（不会清空文件）

        Returns:
            List[TileCoordinate]: 去重后的失败记录，保持首次出现的顺序
        """
        with self._lock:
            return self._read_records()

    def replace(self, records: Iterable[TileCoordinate]):
        """
        原子性地用 records 覆盖失败日志，records 为空时删除文件
        """
        records = list(records)
        if not records:
            self.clear()
            return

        unique = []
        keys = set()
        for coord in records:
            if coord.key() not in keys:
                keys.add(coord.key())
                unique.append(coord)

        content = "".join(format_record(c) + "\n" for c in unique)
        with self._lock:
            try:
                ensure_directory(self.path.parent)
                atomic_write(self.path, content)
            except OSError as e:
                raise LedgerIOError(f"无法写入失败日志 {self.path}: {e}") from e
            self._recorded = keys
            self._loaded_stamp = self._stamp()
        logger.info(f"失败日志已更新: {self.path} ({len(unique)} 条)")

    def clear(self):
        with self._lock:
            try:
                self.path.unlink()
                logger.info(f"失败日志已清空: {self.path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                raise LedgerIOError(f"无法删除失败日志 {self.path}: {e}") from e
            self._recorded = set()
            self._loaded_stamp = None

    def __len__(self) -> int:
        return len(self.drain_all())
