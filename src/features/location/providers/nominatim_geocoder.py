"""Nominatim 逆ジオコーディング実装"""
from typing import Optional

from ....shared.exceptions.errors import GeocodingError
from ....shared.http.client import HTTPClient
from ....shared.http.rate_limiter import RateLimiter
from ....shared.logging.config import get_logger
from ....shared.utils.text import format_coordinates
from ..services.address_formatter import SEPARATOR, condense_parts, format_address

logger = get_logger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# これ以下の長さの結果は住所として扱わない
MIN_ADDRESS_LENGTH = 5


class NominatimGeocoder:
    """OpenStreetMap Nominatim による逆ジオコーディング"""

    def __init__(
        self,
        http_client: HTTPClient,
        url: str = NOMINATIM_REVERSE_URL,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Args:
            http_client: HTTPクライアント
            url: reverse エンドポイント
            rate_limiter: レート制限（Noneの場合は1リクエスト/秒）
            timeout: リクエストタイムアウト（秒、Noneの場合はクライアントの既定値）
        """
        self.http_client = http_client
        self.url = url
        self.rate_limiter = rate_limiter or RateLimiter(requests_per_second=1.0)
        self.timeout = timeout

        logger.info("NominatimGeocoder initialized")

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """
        座標から表示用住所を取得

        失敗しても例外は送出せず、座標文字列 "lat, lon" に縮退する。

        Args:
            latitude: 緯度
            longitude: 経度

        Returns:
            str: 整形済み住所、または座標文字列
        """
        try:
            address = await self._lookup(latitude, longitude)
            if address and len(address) > MIN_ADDRESS_LENGTH:
                return format_address(address)

            logger.debug(f"Reverse geocoding returned no usable address: ({latitude}, {longitude})")

        except Exception as e:
            logger.warning(f"Reverse geocoding failed for ({latitude}, {longitude}): {e}")

        return format_coordinates(latitude, longitude)

    async def _lookup(self, latitude: float, longitude: float) -> str:
        """
        Nominatim を呼び出して display_name を縮約

        Raises:
            HTTPError: リクエスト失敗時
            ParsingError: レスポンスがJSONでない場合
            GeocodingError: 住所データがない場合
        """
        await self.rate_limiter.wait()

        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": 16,
            "addressdetails": 1,
            "accept-language": "en",
        }

        logger.debug(f"Reverse geocoding: ({latitude}, {longitude})")
        data = await self.http_client.get_json(self.url, params=params, timeout=self.timeout)

        display_name = data.get("display_name") if isinstance(data, dict) else None
        if not display_name:
            raise GeocodingError(f"No address data for ({latitude}, {longitude})")

        parts = display_name.split(SEPARATOR)
        if len(parts) >= 3:
            return condense_parts(parts)

        return display_name
