"""レート制限ユーティリティ（外部APIの利用規約遵守用）"""

import asyncio
import random
import time
from typing import Optional

from ..logging.config import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    レート制限を実装するクラス

    リクエスト間に最低限の待機時間を設ける。
    Nominatimの利用規約（1リクエスト/秒）を守るために使用する。
    """

    def __init__(
        self,
        min_wait: float = 1.0,
        max_wait: float = 1.2,
        requests_per_second: Optional[float] = None,
    ):
        """
        Args:
            min_wait: 最小待機時間（秒）
            max_wait: 最大待機時間（秒）
            requests_per_second: 秒あたりの最大リクエスト数（設定時はmin/max_waitを上書き）
        """
        if requests_per_second:
            # 上限を超えないよう下側にはバッファを取らない
            wait_time = 1.0 / requests_per_second
            self.min_wait = wait_time
            self.max_wait = wait_time * 1.2
        else:
            self.min_wait = min_wait
            self.max_wait = max_wait

        self.last_request_time: Optional[float] = None
        self._lock = asyncio.Lock()

        logger.debug(
            f"RateLimiter initialized: min_wait={self.min_wait:.2f}s, "
            f"max_wait={self.max_wait:.2f}s"
        )

    async def wait(self) -> None:
        """
        適切な待機時間をスリープ

        前回のリクエストからの経過時間を考慮し、
        必要に応じて追加の待機を行う
        """
        async with self._lock:
            current_time = time.monotonic()

            if self.last_request_time is not None:
                elapsed = current_time - self.last_request_time
                wait_time = random.uniform(self.min_wait, self.max_wait)

                if elapsed < wait_time:
                    sleep_duration = wait_time - elapsed
                    logger.debug(f"Rate limiting: sleeping for {sleep_duration:.2f}s")
                    await asyncio.sleep(sleep_duration)

            self.last_request_time = time.monotonic()

    def reset(self) -> None:
        """レート制限をリセット"""
        self.last_request_time = None
        logger.debug("RateLimiter reset")
