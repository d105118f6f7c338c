# tilecache/exceptions.py


class TileCacheError(Exception):
    """瓦片缓存相关错误的基类"""
    pass


class ConfigurationError(TileCacheError):
    """配置错误"""
    pass


class UnsupportedProviderError(TileCacheError, ValueError):
    """未知的瓦片源，在开始下载前抛出"""

    def __init__(self, name: str):
        super().__init__(f"未知瓦片源: {name}")
        self.name = name


class TileError(TileCacheError):
    """
    单个瓦片的下载/保存错误，记录到失败日志后可重试
    """
    pass


class FetchError(TileError):
    """网络错误、非200响应或空响应"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"下载失败 {url}: {reason}")
        self.url = url
        self.reason = reason


class StoreWriteError(TileError):
    """瓦片写入磁盘失败"""
    pass


class LedgerIOError(TileCacheError):
    """失败日志无法读取或已损坏"""
    pass
