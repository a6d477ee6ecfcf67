"""ipify + ipapi.co（IP指定）プロバイダー"""
from typing import Optional

from ....shared.http.client import HTTPClient
from ....shared.exceptions.errors import ProviderError
from ..domain.models import ResolvedLocation
from .base import AbstractLocationProvider
from .ipapi_co_provider import location_from_ipapi

IPIFY_URL = "https://api.ipify.org?format=json"
IPAPI_CO_LOOKUP_URL = "https://ipapi.co/{ip}/json/"


class IpifyProvider(AbstractLocationProvider):
    """
    ipify で公開IPを取得し、そのIPで ipapi.co を引く

    Response (ipify): {ip}
    Response (ipapi.co): ipapi.co と同じ形式
    """

    name = "ipify"

    def __init__(
        self,
        http_client: HTTPClient,
        url: str = IPIFY_URL,
        lookup_url: str = IPAPI_CO_LOOKUP_URL,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Args:
            http_client: HTTPクライアント
            url: ipify エンドポイント
            lookup_url: IP指定ルックアップURL（{ip} を置換）
            timeout: リクエストタイムアウト（秒）
        """
        super().__init__(http_client, url, timeout=timeout)
        self.lookup_url = lookup_url

    async def _fetch(self) -> Optional[ResolvedLocation]:
        ip_data = await self._get_payload(self.url)

        ip = ip_data.get("ip")
        if not ip:
            raise ProviderError(self.name, "No IP address in response")

        data = await self._get_payload(self.lookup_url.format(ip=ip))

        latitude = self._coordinate(data.get("latitude"))
        longitude = self._coordinate(data.get("longitude"))
        if latitude is None or longitude is None:
            return None

        return location_from_ipapi(data, latitude, longitude, source_ip=ip, provider=self.name)
