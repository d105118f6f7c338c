# tilecache/downloader/fetcher.py

import threading

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from loguru import logger

from ..exceptions import FetchError

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
)


class TileFetcher:
    """
    HTTP 瓦片下载，每个工作线程复用自己的 requests 会话
    """

    def __init__(self, timeout: float = 10, retries: int = 3, user_agent: str = DEFAULT_USER_AGENT):
        self.timeout = timeout
        self.retries = retries
        self.user_agent = user_agent
        self._local = threading.local()

    def create_session(self) -> requests.Session:
        """
        创建并配置请求会话：连接池和按状态码重试
        """
        session = requests.Session()
        session.headers.update({
            'User-Agent': self.user_agent,
            'Accept': 'image/*',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive'
        })

        adapter = HTTPAdapter(
            pool_connections=20,
            pool_maxsize=20,
            max_retries=Retry(
                total=self.retries,
                backoff_factor=0.5,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["GET"],
                raise_on_status=False,
            )
        )
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        logger.debug("创建新的请求会话，配置连接池和重试机制")
        return session

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.create_session()
            self._local.session = session
        return session

    def fetch(self, url: str) -> bytes:
        """
        下载一个瓦片

        Args:
            url: 瓦片URL

        Returns:
            bytes: 图片数据

        Raises:
            FetchError: 网络错误、非200响应、非图片响应或空响应
        """
        try:
            response = self._session().get(url, timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.ConnectionError as e:
            # 连接出错后丢弃当前线程的会话，下次重建
            self._local.session = None
            raise FetchError(url, f"连接错误 - {e}") from e
        except requests.exceptions.Timeout as e:
            raise FetchError(url, f"超时错误 - {e}") from e
        except requests.exceptions.RequestException as e:
            raise FetchError(url, f"请求错误 - {e}") from e

        try:
            if response.status_code != 200:
                raise FetchError(url, f"HTTP {response.status_code}")

            content_type = response.headers.get('Content-Type', '')
            if content_type and 'image' not in content_type:
                raise FetchError(url, f"非图片响应, Content-Type: {content_type}")

            data = response.content
            if not data:
                raise FetchError(url, "下载数据为空")
            return data
        finally:
            response.close()

    def __call__(self, url: str) -> bytes:
        return self.fetch(url)
