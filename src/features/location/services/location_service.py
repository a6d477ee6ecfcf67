"""位置情報解決サービス"""

import random
from dataclasses import replace
from typing import Optional

from ....infrastructure.config.settings import Settings
from ....shared.exceptions.errors import (
    ConfigurationError,
    DeviceLocationError,
    RetryExhaustedError,
)
from ....shared.http.client import HTTPClient
from ....shared.http.rate_limiter import RateLimiter
from ....shared.logging.config import get_logger
from ....shared.utils.datetime_utils import normalize_timezone
from ..domain.models import PositionOptions, ResolvedLocation
from ..domain.validator import LocationValidator
from ..providers.device_locator import DeviceLocator, PositionSource
from ..providers.freegeoip_provider import FreeGeoIpProvider
from ..providers.ipapi_co_provider import IpapiCoProvider
from ..providers.ipify_provider import IpifyProvider
from ..providers.ipinfo_provider import IpInfoProvider
from ..providers.nominatim_geocoder import NominatimGeocoder
from .location_cache import LocationCache
from .provider_chain import ProviderChain
from .retry_controller import RetryController

logger = get_logger(__name__)

DEFAULT_JITTER_DEGREES = 0.0025
DEFAULT_MAX_ATTEMPTS = 3


class LocationService:
    """
    位置情報解決サービス

    キャッシュ → プロバイダーチェーン → リトライ → 端末測位 の順に解決する。
    すべて失敗した場合は例外を送出し、固定の既定位置は返さない。
    """

    def __init__(
        self,
        chain: ProviderChain,
        geocoder: NominatimGeocoder,
        retry_controller: Optional[RetryController] = None,
        device_locator: Optional[DeviceLocator] = None,
        cache: Optional[LocationCache] = None,
        validator: Optional[LocationValidator] = None,
        jitter: float = DEFAULT_JITTER_DEGREES,
        rng: Optional[random.Random] = None,
        http_client: Optional[HTTPClient] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """
        Args:
            chain: プロバイダーチェーン
            geocoder: 逆ジオコーダー
            retry_controller: リトライ制御（Noneの場合はチェーンから作成）
            device_locator: 端末測位（Noneの場合はフォールバックしない）
            cache: キャッシュ（Noneの場合は新規作成）
            validator: 座標検証
            jitter: ユーザー位置シミュレーションのずらし幅（度）
            rng: 乱数生成器（テストで差し替え可能）
            http_client: aclose() で閉じるHTTPクライアント
            max_attempts: get_location_with_retry の既定の最大試行回数
        """
        self.validator = validator or LocationValidator()
        self.chain = chain
        self.geocoder = geocoder
        self.retry_controller = retry_controller or RetryController(chain, validator=self.validator)
        self.device_locator = device_locator
        self.cache = cache or LocationCache()
        self.jitter = jitter
        self._rng = rng or random.Random()
        self._http_client = http_client
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[HTTPClient] = None) -> "LocationService":
        """
        設定からサービスを組み立てる

        Args:
            settings: アプリケーション設定
            http_client: HTTPクライアント（Noneの場合は新規作成し、aclose() で閉じる）

        Returns:
            LocationService: サービス

        Raises:
            ConfigurationError: 設定値が不正な場合
        """
        if settings.nominatim_requests_per_second <= 0:
            raise ConfigurationError("nominatim_requests_per_second must be positive")
        if settings.retry_max_attempts < 1:
            raise ConfigurationError("retry_max_attempts must be at least 1")

        owned_client = http_client is None
        client = http_client or HTTPClient(
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            user_agent=settings.http_user_agent,
        )

        validator = LocationValidator()
        geocoder = NominatimGeocoder(
            client,
            url=settings.nominatim_url,
            rate_limiter=RateLimiter(requests_per_second=settings.nominatim_requests_per_second),
        )
        providers = [
            IpapiCoProvider(client, url=settings.ipapi_co_url, timeout=settings.ipapi_co_timeout),
            IpifyProvider(client, url=settings.ipify_url, lookup_url=settings.ipapi_co_lookup_url),
            FreeGeoIpProvider(client, url=settings.freegeoip_url),
            IpInfoProvider(client, url=settings.ipinfo_url),
        ]
        chain = ProviderChain(
            providers,
            geocoder,
            validator=validator,
            provider_timeout=settings.provider_timeout,
        )
        retry_controller = RetryController(
            chain,
            validator=validator,
            base_delay=settings.retry_base_delay,
        )
        device_locator = DeviceLocator(
            geocoder,
            options=PositionOptions(
                timeout=settings.device_timeout,
                enable_high_accuracy=False,
                maximum_age=settings.device_maximum_age,
            ),
            timezone_name=(
                normalize_timezone(settings.device_timezone) if settings.device_timezone else None
            ),
            validator=validator,
        )

        logger.info(f"LocationService configured: environment={settings.environment}")

        return cls(
            chain,
            geocoder,
            retry_controller=retry_controller,
            device_locator=device_locator,
            cache=LocationCache(ttl_seconds=settings.location_cache_ttl_seconds),
            validator=validator,
            jitter=settings.user_location_jitter,
            http_client=client if owned_client else None,
            max_attempts=settings.retry_max_attempts,
        )

    async def get_current_location(self, use_cache: bool = True) -> ResolvedLocation:
        """
        プロバイダーチェーンを1パスだけ試して位置情報を解決

        Args:
            use_cache: 有効なキャッシュがあればそれを返すか

        Returns:
            ResolvedLocation: 位置情報

        Raises:
            ChainExhaustedError: 全プロバイダーが失敗した場合
        """
        if use_cache:
            cached = self.cache.get()
            if cached is not None:
                logger.debug("Returning cached location")
                return cached

        location = await self.chain.resolve()
        self.cache.put(location)

        return location

    async def get_location_with_retry(
        self,
        max_attempts: Optional[int] = None,
        position_source: Optional[PositionSource] = None,
        use_cache: bool = True,
    ) -> ResolvedLocation:
        """
        リトライと端末測位フォールバック付きで位置情報を解決（主要な入口）

        Args:
            max_attempts: チェーン全体の最大試行回数（Noneの場合は設定値）
            position_source: 今回使用する端末測位ソース
            use_cache: 有効なキャッシュがあればそれを返すか

        Returns:
            ResolvedLocation: 位置情報

        Raises:
            RetryExhaustedError: リトライを使い切り、端末測位が構成されていない場合
            DeviceLocationError: 端末測位も失敗した場合
        """
        if use_cache:
            cached = self.cache.get()
            if cached is not None:
                logger.debug("Returning cached location")
                return cached

        try:
            location = await self.retry_controller.resolve_with_retry(
                self.max_attempts if max_attempts is None else max_attempts
            )
        except RetryExhaustedError as retry_error:
            if self.device_locator is None:
                raise

            logger.warning("Network location unavailable, falling back to device positioning")
            try:
                location = await self.device_locator.resolve_via_device(position_source)
            except DeviceLocationError as device_error:
                logger.error(f"Device positioning failed: {device_error}")
                raise device_error from retry_error

        self.cache.put(location)

        return location

    async def get_user_location(self) -> ResolvedLocation:
        """
        解決済みの位置の近くにユーザー位置をシミュレートする

        実際のユーザー住所が得られるまでの開発・デモ用の代替であり、
        各軸に最大 ±jitter 度（既定で約500m）のずれを加える。

        Returns:
            ResolvedLocation: ずらした座標と、その座標の住所

        Raises:
            ChainExhaustedError: 基準位置が解決できない場合
        """
        base_location = await self.get_current_location()

        latitude = self._clamp(base_location.latitude + self._offset(), -90.0, 90.0)
        longitude = self._clamp(base_location.longitude + self._offset(), -180.0, 180.0)

        address = await self.get_detailed_address(latitude, longitude)

        return replace(base_location, latitude=latitude, longitude=longitude, address=address)

    async def get_detailed_address(self, latitude: float, longitude: float) -> str:
        """
        座標から表示用住所を取得（失敗時は座標文字列）

        Args:
            latitude: 緯度
            longitude: 経度
        """
        return await self.geocoder.reverse_geocode(latitude, longitude)

    def get_cached_location(self) -> Optional[ResolvedLocation]:
        """有効なキャッシュを取得"""
        return self.cache.get()

    def clear_cache(self) -> None:
        """キャッシュをクリア"""
        self.cache.clear()

    async def aclose(self) -> None:
        """所有しているHTTPクライアントを閉じる"""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _offset(self) -> float:
        return (self._rng.random() - 0.5) * 2 * self.jitter

    @staticmethod
    def _clamp(value: float, lower: float, upper: float) -> float:
        return max(lower, min(upper, value))
