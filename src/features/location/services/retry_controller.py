"""プロバイダーチェーンのリトライ制御"""
import asyncio
from typing import Awaitable, Callable, Optional

from ....shared.exceptions.errors import LocationError, RetryExhaustedError
from ....shared.logging.config import get_logger
from ..domain.models import ResolvedLocation
from ..domain.validator import LocationValidator
from .provider_chain import ProviderChain

logger = get_logger(__name__)


class RetryController:
    """
    チェーン全体の解決をリトライで包む

    試行 n 回目の失敗後は base_delay * n 秒待つ。
    検証に通らない結果もネットワークエラーと同じく失敗として扱う。
    """

    def __init__(
        self,
        chain: ProviderChain,
        validator: Optional[LocationValidator] = None,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            chain: プロバイダーチェーン
            validator: 座標検証
            base_delay: 待機時間の基準値（秒）
            sleep: 待機関数（テストで差し替え可能）
        """
        self.chain = chain
        self.validator = validator or LocationValidator()
        self.base_delay = base_delay
        self._sleep = sleep

    async def resolve_with_retry(self, max_attempts: int = 3) -> ResolvedLocation:
        """
        リトライ付きで位置情報を解決

        Args:
            max_attempts: 最大試行回数

        Returns:
            ResolvedLocation: 検証済みの位置情報

        Raises:
            ValueError: max_attempts が1未満の場合
            RetryExhaustedError: すべての試行が失敗した場合
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1 (got {max_attempts})")

        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                location = await self.chain.resolve()
                if self.validator.is_valid(location):
                    if attempt > 1:
                        logger.info(f"Location resolved on attempt {attempt}/{max_attempts}")
                    return location

                last_error = LocationError(f"Invalid location data: {location}")
                logger.warning(f"Attempt {attempt}/{max_attempts}: invalid location data")

            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{max_attempts} failed: {e}")

            if attempt == max_attempts:
                break

            delay = self.base_delay * attempt
            logger.debug(f"Retrying location resolution in {delay:.1f}s")
            await self._sleep(delay)

        logger.error(f"All {max_attempts} location attempts failed")
        raise RetryExhaustedError(
            f"All {max_attempts} location attempts failed", attempts=max_attempts
        ) from last_error
