# tilecache/downloader/utils.py

import os
import tempfile
from pathlib import Path
from typing import Union


def ensure_directory(directory: Path):
    """
    确保目录存在，不存在则创建（多个线程同时创建同一目录时不会报错）

    Args:
        directory: 目录路径
    """
    directory.mkdir(parents=True, exist_ok=True)


def atomic_write(path: Union[str, Path], data: Union[bytes, str]):
    """
    先写入同目录下的临时文件，再原子性替换目标文件

    中途失败时删除临时文件，目标文件要么是旧内容要么是完整的新内容

    Args:
        path: 目标文件路径
        data: 要写入的内容
    """
    path = Path(path)
    if isinstance(data, str):
        data = data.encode("utf-8")

    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, path)
    except BaseException:
        # 清理临时文件后继续抛出
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise
