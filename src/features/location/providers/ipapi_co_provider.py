"""ipapi.co プロバイダー"""
from typing import Any, Optional

from ....shared.http.client import HTTPClient
from ....shared.utils.datetime_utils import normalize_timezone
from ....shared.utils.text import UNKNOWN, text_or_default
from ..domain.models import ResolvedLocation
from .base import AbstractLocationProvider

IPAPI_CO_URL = "https://ipapi.co/json/"


def location_from_ipapi(
    data: dict[str, Any],
    latitude: float,
    longitude: float,
    source_ip: Optional[str],
    provider: str,
) -> ResolvedLocation:
    """ipapi.co 形式のレスポンスを ResolvedLocation に変換"""
    return ResolvedLocation(
        latitude=latitude,
        longitude=longitude,
        source_ip=text_or_default(source_ip),
        country=text_or_default(data.get("country_name")),
        region=text_or_default(data.get("region")),
        city=text_or_default(data.get("city")),
        timezone=normalize_timezone(data.get("timezone")),
        isp=data.get("org") or None,
        provider=provider,
    )


class IpapiCoProvider(AbstractLocationProvider):
    """
    ipapi.co（先頭プロバイダー）

    Response: {latitude, longitude, city, region, country_name, timezone, ip, org}
    """

    name = "ipapi.co"

    def __init__(
        self,
        http_client: HTTPClient,
        url: str = IPAPI_CO_URL,
        timeout: Optional[float] = 5.0,
    ) -> None:
        super().__init__(http_client, url, timeout=timeout)

    async def _fetch(self) -> Optional[ResolvedLocation]:
        data = await self._get_payload(self.url)

        latitude = self._coordinate(data.get("latitude"))
        longitude = self._coordinate(data.get("longitude"))
        if latitude is None or longitude is None:
            return None

        return location_from_ipapi(
            data,
            latitude,
            longitude,
            source_ip=data.get("ip") or UNKNOWN,
            provider=self.name,
        )
