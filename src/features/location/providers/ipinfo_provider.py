"""ipinfo プロバイダー"""
from typing import Optional

from ....shared.http.client import HTTPClient
from ....shared.exceptions.errors import ProviderError
from ....shared.utils.datetime_utils import normalize_timezone
from ....shared.utils.text import UNKNOWN, text_or_default
from ..domain.models import ResolvedLocation
from .base import AbstractLocationProvider

IPINFO_URL = "https://ipinfo.io/json"


class IpInfoProvider(AbstractLocationProvider):
    """
    ipinfo

    Response: {loc: "lat,lon", city, region, country, timezone, ip, org}
    """

    name = "ipinfo"

    def __init__(
        self,
        http_client: HTTPClient,
        url: str = IPINFO_URL,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(http_client, url, timeout=timeout)

    async def _fetch(self) -> Optional[ResolvedLocation]:
        data = await self._get_payload(self.url)

        loc = data.get("loc")
        if not loc:
            return None

        parts = str(loc).split(",")
        if len(parts) != 2:
            raise ProviderError(self.name, f"Malformed loc value: {loc!r}")

        latitude = self._coordinate(parts[0].strip())
        longitude = self._coordinate(parts[1].strip())
        if latitude is None or longitude is None:
            return None

        return ResolvedLocation(
            latitude=latitude,
            longitude=longitude,
            source_ip=text_or_default(data.get("ip")),
            country=text_or_default(data.get("country")),
            region=text_or_default(data.get("region")),
            city=text_or_default(data.get("city")),
            timezone=normalize_timezone(data.get("timezone")),
            isp=data.get("org") or UNKNOWN,
            provider=self.name,
        )
