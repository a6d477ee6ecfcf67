"""IPジオロケーションプロバイダーの基底クラス"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from ....shared.exceptions.errors import HTTPError, ParsingError, ProviderError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger
from ..domain.models import ResolvedLocation

logger = get_logger(__name__)


class AbstractLocationProvider(ABC):
    """
    IPジオロケーションプロバイダーの抽象基底クラス

    サブクラスは _fetch() でプロバイダー固有のレスポンスを
    ResolvedLocation に変換する。座標がない場合は None を返す（ソフト失敗）。
    """

    name = "provider"

    def __init__(
        self,
        http_client: HTTPClient,
        url: str,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Args:
            http_client: HTTPクライアント
            url: エンドポイントURL
            timeout: リクエストタイムアウト（秒、Noneの場合はクライアントの既定値）
        """
        self.http_client = http_client
        self.url = url
        self.timeout = timeout

    async def attempt(self) -> Optional[ResolvedLocation]:
        """
        位置情報を取得

        Returns:
            Optional[ResolvedLocation]: 候補（座標がない場合はNone）

        Raises:
            ProviderError: HTTP失敗・ネットワーク失敗・解析失敗時
        """
        try:
            return await self._fetch()
        except ProviderError:
            raise
        except (HTTPError, ParsingError) as e:
            raise ProviderError(self.name, str(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(self.name, f"Unexpected response shape: {e}") from e

    @abstractmethod
    async def _fetch(self) -> Optional[ResolvedLocation]:
        """プロバイダー固有の取得処理"""
        pass

    async def _get_payload(self, url: str, timeout: Optional[float] = None) -> dict[str, Any]:
        """
        JSONオブジェクトを取得

        Raises:
            ProviderError: ボディがオブジェクトでない、またはエラー応答の場合
        """
        data = await self.http_client.get_json(
            url,
            headers={"Accept": "application/json"},
            timeout=timeout if timeout is not None else self.timeout,
        )

        if not isinstance(data, dict):
            raise ProviderError(self.name, "Response body is not a JSON object")

        # 無料枠の上限などで 200 のままエラーを返すプロバイダーがある
        if data.get("error"):
            reason = data.get("reason") or data.get("message") or "error response"
            raise ProviderError(self.name, str(reason))

        return data

    def _coordinate(self, value: Any) -> Optional[float]:
        """
        座標値を float に変換

        Raises:
            ProviderError: 数値として解釈できない場合
        """
        if value is None or value == "":
            return None

        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ProviderError(self.name, f"Invalid coordinate value: {value!r}") from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(url={self.url!r})"
