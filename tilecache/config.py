# tilecache/config.py

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .exceptions import ConfigurationError

ENV_PREFIX = "TILECACHE_"


@dataclass(frozen=True)
class DownloadConfig:
    """
    下载与服务配置，默认值与命令行参数的默认值一致
    """

    cache_dir: str = "tiles"
    failed_log: str = "failed_tiles.log"
    log_file: str = "download.log"
    log_rotate_lines: int = 10000
    log_level: str = "INFO"
    locale: Optional[str] = "ru"
    concurrency: int = 6
    strategy: str = "batch"
    timeout: float = 10.0
    retries: int = 3
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    server_host: str = "127.0.0.1"
    server_port: int = 3000

    def validate(self) -> "DownloadConfig":
        if self.concurrency < 1:
            raise ConfigurationError(f"concurrency 必须大于0: {self.concurrency}")
        if self.strategy not in ("batch", "window"):
            raise ConfigurationError(f"未知的调度策略: {self.strategy}")
        if self.log_rotate_lines < 1:
            raise ConfigurationError(f"log_rotate_lines 必须大于0: {self.log_rotate_lines}")
        if self.locale and "," in self.locale:
            raise ConfigurationError(f"locale 中不能包含逗号: {self.locale!r}")
        return self

    def override(self, **changes) -> "DownloadConfig":
        """用非 None 的值覆盖配置（命令行参数）"""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes).validate()


def _coerce(name: str, value: Any, default: Any) -> Any:
    if value is None or default is None:
        return value
    # JSON 的 true/false 不能当作数字
    if isinstance(value, bool):
        raise ConfigurationError(f"配置项 {name} 的值无效: {value!r}")
    if isinstance(value, type(default)):
        return value
    try:
        return type(default)(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"配置项 {name} 的值无效: {value!r}") from e


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> DownloadConfig:
    """
    加载配置：默认值 <- JSON 配置文件 <- TILECACHE_* 环境变量

    Args:
        path: JSON 配置文件路径
        env: 环境变量，默认使用 os.environ

    Returns:
        DownloadConfig: 配置

    Raises:
        ConfigurationError: 配置文件不存在、格式错误或值无效
    """
    env = os.environ if env is None else env
    defaults = DownloadConfig()
    values: Dict[str, Any] = {}
    known = {f.name for f in fields(DownloadConfig)}

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"配置文件不存在: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"配置文件 {path} 不是有效的 JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"配置文件 {path} 必须是 JSON 对象")
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"未知的配置项: {', '.join(sorted(unknown))}")
        values.update(data)

    for name in known:
        env_value = env.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value

    coerced = {
        name: _coerce(name, value, getattr(defaults, name))
        for name, value in values.items()
    }
    return replace(defaults, **coerced).validate()
