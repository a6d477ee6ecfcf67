"""非同期HTTPクライアント（タイムアウト監視付き）"""
import asyncio
from typing import Any, Optional

import httpx

from ..exceptions.errors import HTTPError, ParsingError
from ..logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "MealSubscriptionLocator/1.0 (+https://nominatim.org/release-docs/latest/api/Reverse/)"


class HTTPClient:
    """
    外部APIアクセス用の非同期HTTPクライアント

    Features:
    - 接続エラー時の自動リトライ（トランスポート層）
    - リクエスト毎のタイムアウト + ウォッチドッグ
    - 接続プール共有
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_retries: int = 2,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            timeout: デフォルトのリクエストタイムアウト（秒）
            max_retries: 接続失敗時の最大リトライ回数
            user_agent: User-Agentヘッダー
            transport: 差し替え用トランスポート（テスト用）
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._transport = transport

        self.client = self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        """クライアントを作成"""
        transport = self._transport or httpx.AsyncHTTPTransport(retries=self.max_retries)

        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
        )

    async def get(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """
        GETリクエスト

        httpx自身のタイムアウトに加え、asyncio.wait_forで呼び出し全体を打ち切る。
        待機中のタスクがキャンセルされた場合はリクエストも中断される。

        Args:
            url: リクエストURL
            params: クエリパラメータ
            headers: 追加ヘッダー
            timeout: このリクエストのタイムアウト（秒、Noneの場合はデフォルト）

        Returns:
            レスポンスオブジェクト

        Raises:
            HTTPError: リクエスト失敗時（タイムアウト含む）
        """
        request_timeout = timeout if timeout is not None else self.timeout

        try:
            logger.debug(f"GET request to {url}")
            response = await asyncio.wait_for(
                self.client.get(url, params=params, headers=headers, timeout=request_timeout),
                timeout=request_timeout,
            )
            response.raise_for_status()
            logger.debug(f"GET request successful: {url} (status={response.status_code})")
            return response

        except asyncio.TimeoutError as e:
            logger.warning(f"GET request timed out: {url} ({request_timeout}s)")
            raise HTTPError(f"GET {url} timed out after {request_timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning(f"GET request failed: {url} - {e}")
            raise HTTPError(f"Failed to GET {url}: {e}") from e
        except httpx.InvalidURL as e:
            # httpx.InvalidURL は httpx.HTTPError に含まれない
            logger.warning(f"GET request has an invalid URL: {url!r} - {e}")
            raise HTTPError(f"Invalid URL {url!r}: {e}") from e

    async def get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        GETリクエストを送りJSONボディを返す

        Raises:
            HTTPError: リクエスト失敗時
            ParsingError: ボディがJSONでない場合
        """
        response = await self.get(url, params=params, headers=headers, timeout=timeout)

        try:
            return response.json()
        except ValueError as e:
            raise ParsingError(f"Invalid JSON from {url}: {e}") from e

    async def aclose(self) -> None:
        """クライアントをクローズ"""
        await self.client.aclose()
        logger.debug("HTTP client closed")

    async def __aenter__(self) -> "HTTPClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
