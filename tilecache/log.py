# tilecache/log.py

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

LOG_FORMAT = "[{time:YYYY-MM-DD HH:mm:ss.SSS}] {level: <8} {message}"


class LineCountRotation:
    """
    loguru 的 rotation 回调：日志文件写满 max_lines 行后切换到新文件
    """

    def __init__(self, max_lines: int, initial_lines: int = 0):
        self.max_lines = max_lines
        self.lines = initial_lines

    def __call__(self, message, file) -> bool:
        new_lines = max(1, str(message).count("\n"))
        if self.lines + new_lines > self.max_lines:
            self.lines = new_lines
            return True
        self.lines += new_lines
        return False


def _count_lines(path: Path) -> int:
    try:
        with open(path, "rb") as f:
            return sum(1 for _ in f)
    except OSError:
        return 0


def setup_logging(
    log_file: Optional[Union[str, Path]] = "download.log",
    level: str = "INFO",
    rotate_lines: int = 10000,
    console: bool = True,
):
    """
    配置 loguru：控制台输出 + 按行数切换的日志文件

    写日志出错时 loguru 只打印错误信息（catch=True），不会中断下载

    Args:
        log_file: 日志文件路径，None 表示不写文件
        level: 日志级别
        rotate_lines: 每个日志文件的最大行数
        console: 是否输出到 stderr
    """
    logger.remove()
    if console:
        logger.add(sys.stderr, level=level, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}")

    if log_file:
        log_path = Path(log_file)
        try:
            logger.add(
                log_path,
                level=level,
                format=LOG_FORMAT,
                rotation=LineCountRotation(rotate_lines, _count_lines(log_path)),
                encoding="utf-8",
                enqueue=False,
                catch=True,
            )
        except OSError as e:
            # 日志文件打不开时只输出到控制台
            logger.warning(f"无法打开日志文件 {log_path}: {e}")
            return
        logger.debug(f"日志文件: {log_path}, 每 {rotate_lines} 行切换")
