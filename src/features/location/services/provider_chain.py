"""プロバイダーチェーン"""
import asyncio
from dataclasses import replace
from typing import Optional, Sequence

from ....shared.exceptions.errors import ChainExhaustedError, ProviderError
from ....shared.logging.config import get_logger
from ..domain.models import ResolvedLocation
from ..domain.validator import LocationValidator
from ..providers.base import AbstractLocationProvider
from ..providers.nominatim_geocoder import NominatimGeocoder

logger = get_logger(__name__)


class ProviderChain:
    """
    順序付きのIPジオロケーションプロバイダー列

    先頭から順に試し、最初に検証を通った候補を逆ジオコーディングで補完して返す。
    """

    def __init__(
        self,
        providers: Sequence[AbstractLocationProvider],
        geocoder: NominatimGeocoder,
        validator: Optional[LocationValidator] = None,
        provider_timeout: Optional[float] = 15.0,
    ) -> None:
        """
        Args:
            providers: プロバイダーのリスト（この順で試す）
            geocoder: 逆ジオコーダー
            validator: 座標検証
            provider_timeout: プロバイダー1回分の試行の上限（秒、Noneの場合は無制限）
        """
        if not providers:
            raise ValueError("ProviderChain requires at least one provider")

        self.providers = list(providers)
        self.geocoder = geocoder
        self.validator = validator or LocationValidator()
        self.provider_timeout = provider_timeout

        logger.info(
            f"ProviderChain initialized: {[provider.name for provider in self.providers]}"
        )

    async def resolve(self) -> ResolvedLocation:
        """
        位置情報を解決（1パス、リトライなし）

        Returns:
            ResolvedLocation: 住所付きの位置情報

        Raises:
            ChainExhaustedError: 全プロバイダーが失敗した場合
        """
        failures: list[str] = []

        for provider in self.providers:
            logger.info(f"Trying location provider: {provider.name}")

            try:
                candidate = await self._attempt(provider)
            except ProviderError as e:
                logger.warning(f"Location provider failed: {e}")
                failures.append(str(e))
                continue

            if candidate is None:
                logger.warning(f"Location provider returned no coordinates: {provider.name}")
                failures.append(f"{provider.name}: no coordinates")
                continue

            if not self.validator.is_valid(candidate):
                logger.warning(
                    f"Location provider returned invalid coordinates: {provider.name} "
                    f"({candidate.latitude}, {candidate.longitude})"
                )
                failures.append(f"{provider.name}: invalid coordinates")
                continue

            location = await self._enrich(candidate)
            logger.info(f"Resolved location with provider {provider.name}: {location}")
            return location

        raise ChainExhaustedError("All location providers failed", failures=failures)

    async def _attempt(self, provider: AbstractLocationProvider) -> Optional[ResolvedLocation]:
        """プロバイダーを1回試す（試行全体にタイムアウトをかける）"""
        if self.provider_timeout is None:
            return await provider.attempt()

        try:
            return await asyncio.wait_for(provider.attempt(), timeout=self.provider_timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(
                provider.name, f"No response within {self.provider_timeout}s"
            ) from e

    async def _enrich(self, candidate: ResolvedLocation) -> ResolvedLocation:
        """逆ジオコーディングで住所を補完"""
        address = await self.geocoder.reverse_geocode(candidate.latitude, candidate.longitude)
        return replace(candidate, address=address)
