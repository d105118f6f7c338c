# tilecache/downloader/store.py

from pathlib import Path
from typing import Optional, Union

from loguru import logger

from ..exceptions import StoreWriteError
from ..models import TileCoordinate
from .utils import atomic_write, ensure_directory


class TileStore:
    """
    本地瓦片缓存，目录结构为 <root>/<provider>/<zoom>/<x>/<y>.png

    文件存在即表示瓦片已缓存，没有额外的索引
    """

    extension = "png"

    def __init__(self, root: Union[str, Path] = "tiles"):
        self.root = Path(root)

    def path_for(self, coord: TileCoordinate) -> Path:
        """
        获取瓦片保存路径

        Args:
            coord: 瓦片坐标

        Returns:
            Path: 瓦片保存路径
        """
        return self.root / coord.provider / str(coord.zoom) / str(coord.x) / f"{coord.y}.{self.extension}"

    def exists(self, coord: TileCoordinate) -> bool:
        return self.path_for(coord).is_file()

    def read(self, coord: TileCoordinate) -> Optional[bytes]:
        path = self.path_for(coord)
        if not path.is_file():
            return None
        return path.read_bytes()

    def save(self, coord: TileCoordinate, data: bytes):
        """
        保存瓦片，写入临时文件后原子替换，崩溃时不会留下不完整的瓦片

        Args:
            coord: 瓦片坐标
            data: 图片数据

        Raises:
            StoreWriteError: 数据为空或写入失败
        """
        if not data:
            raise StoreWriteError(f"瓦片数据为空: {coord}")

        file_path = self.path_for(coord)
        try:
            ensure_directory(file_path.parent)
            atomic_write(file_path, data)
        except OSError as e:
            raise StoreWriteError(f"文件写入错误 {file_path} - {e}") from e

        logger.debug(f"已保存瓦片: {file_path} ({len(data)} 字节)")
