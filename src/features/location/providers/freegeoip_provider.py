"""freegeoip プロバイダー"""
from typing import Optional

from ....shared.http.client import HTTPClient
from ....shared.utils.datetime_utils import normalize_timezone
from ....shared.utils.text import text_or_default
from ..domain.models import ResolvedLocation
from .base import AbstractLocationProvider

FREEGEOIP_URL = "https://freegeoip.app/json/"


class FreeGeoIpProvider(AbstractLocationProvider):
    """
    freegeoip

    Response: {latitude, longitude, region_name, city, country_name, time_zone, isp, ip}
    """

    name = "freegeoip"

    def __init__(
        self,
        http_client: HTTPClient,
        url: str = FREEGEOIP_URL,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(http_client, url, timeout=timeout)

    async def _fetch(self) -> Optional[ResolvedLocation]:
        data = await self._get_payload(self.url)

        latitude = self._coordinate(data.get("latitude"))
        longitude = self._coordinate(data.get("longitude"))
        if latitude is None or longitude is None:
            return None

        return ResolvedLocation(
            latitude=latitude,
            longitude=longitude,
            source_ip=text_or_default(data.get("ip")),
            country=text_or_default(data.get("country_name")),
            region=text_or_default(data.get("region_name")),
            city=text_or_default(data.get("city")),
            timezone=normalize_timezone(data.get("time_zone")),
            isp=data.get("isp") or None,
            provider=self.name,
        )
