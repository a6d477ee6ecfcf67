"""テスト共通フィクスチャ"""
from typing import Optional

import pytest

from src.features.location.domain.models import ResolvedLocation
from src.features.location.providers.base import AbstractLocationProvider
from src.features.location.providers.nominatim_geocoder import NominatimGeocoder
from src.shared.exceptions.errors import ProviderError
from src.shared.http.client import HTTPClient
from src.shared.http.rate_limiter import RateLimiter


class StubProvider(AbstractLocationProvider):
    """固定の結果を返すプロバイダー（HTTPなし）"""

    def __init__(
        self,
        name: str,
        result: Optional[ResolvedLocation] = None,
        error: Optional[str] = None,
    ) -> None:
        super().__init__(http_client=None, url=f"stub://{name}")  # type: ignore[arg-type]
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    async def _fetch(self) -> Optional[ResolvedLocation]:
        self.calls += 1
        if self.error:
            raise ProviderError(self.name, self.error)
        return self.result


class StubGeocoder:
    """固定の住所を返す逆ジオコーダー"""

    def __init__(self, address: str = "Sheikh Zayed Rd, Dubai, United Arab Emirates") -> None:
        self.address = address
        self.calls: list[tuple[float, float]] = []

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        self.calls.append((latitude, longitude))
        return self.address


@pytest.fixture
def http_client() -> HTTPClient:
    return HTTPClient(timeout=2.0, max_retries=0)


@pytest.fixture
def no_wait_limiter() -> RateLimiter:
    return RateLimiter(min_wait=0.0, max_wait=0.0)


@pytest.fixture
def geocoder(http_client: HTTPClient, no_wait_limiter: RateLimiter) -> NominatimGeocoder:
    return NominatimGeocoder(http_client, rate_limiter=no_wait_limiter)


@pytest.fixture
def dubai() -> ResolvedLocation:
    return ResolvedLocation(
        latitude=25.2048,
        longitude=55.2708,
        source_ip="203.0.113.7",
        country="United Arab Emirates",
        region="Dubai",
        city="Dubai",
        timezone="Asia/Dubai",
        isp="Example Telecom",
        provider="stub",
    )


@pytest.fixture
def make_provider():
    """StubProvider のファクトリ"""
    return StubProvider


@pytest.fixture
def stub_geocoder() -> StubGeocoder:
    return StubGeocoder()
