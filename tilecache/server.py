# tilecache/server.py

import argparse
from pathlib import Path
from typing import Optional, Union

from flask import Flask, Response, jsonify
from loguru import logger

from .config import load_config
from .downloader.store import TileStore
from .log import setup_logging
from .models import TileCoordinate
from .providers import ProviderManager

# 超过该级别的请求直接返回 404
MAX_ZOOM = 30


def create_app(cache_dir: Union[str, Path] = "tiles") -> Flask:
    """
    创建瓦片服务：GET /tiles/<provider>/<z>/<x>/<y>.png

    Args:
        cache_dir: 瓦片缓存根目录
    """
    app = Flask(__name__)
    app.config['TILE_STORE'] = TileStore(Path(cache_dir).resolve())

    @app.route('/tiles/<provider>/<int:z>/<int:x>/<int:y>.png')
    def get_tile(provider, z, x, y):
        store: TileStore = app.config["TILE_STORE"]
        if z > MAX_ZOOM:
            return _not_found()
        try:
            coord = TileCoordinate(provider=provider, zoom=z, x=x, y=y)
        except ValueError:
            return _not_found()

        path = store.path_for(coord).resolve()
        # provider 来自 URL，不允许跳出缓存目录
        if store.root not in path.parents:
            return _not_found()
        data = store.read(coord)
        if data is None:
            return _not_found()
        return Response(data, mimetype='image/png')

    @app.route('/api/providers')
    def api_providers():
        # 获取支持的瓦片提供商及其信息
        return jsonify([ProviderManager.provider_info(name) for name in ProviderManager.list_providers()])

    return app


def _not_found() -> Response:
    return Response('Tile not found', status=404, mimetype='text/plain')


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(description="本地瓦片服务")
    parser.add_argument("--config", help="JSON 配置文件")
    parser.add_argument("--host")
    parser.add_argument("--port", type=int)
    parser.add_argument("--cache-dir")
    args = parser.parse_args(argv)

    config = load_config(args.config).override(
        server_host=args.host, server_port=args.port, cache_dir=args.cache_dir
    )
    setup_logging(log_file=None, level=config.log_level)

    app = create_app(config.cache_dir)
    logger.info(f"Server running at http://{config.server_host}:{config.server_port}, 瓦片目录: {config.cache_dir}")
    app.run(host=config.server_host, port=config.server_port)


if __name__ == '__main__':
    main()
