"""解決済み位置情報のキャッシュ"""

import threading
import time
from typing import Callable, Optional

from ....shared.logging.config import get_logger
from ..domain.models import CacheEntry, ResolvedLocation

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class LocationCache:
    """
    直近の解決結果を保持する1スロットのメモリ内キャッシュ

    有効期限は読み出し時に判定する。get/put は並行に呼ばれてもよい。
    """

    CACHE_KEY = "current"

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            ttl_seconds: 有効期間（秒）
            clock: 時刻取得関数（テストで差し替え可能）
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hit_count = 0
        self.miss_count = 0

    def get(self) -> Optional[ResolvedLocation]:
        """
        有効なキャッシュを取得

        Returns:
            Optional[ResolvedLocation]: 有効期間内の位置情報（なければNone）
        """
        with self._lock:
            entry = self._entries.get(self.CACHE_KEY)

            if entry is None or not entry.is_fresh(self._clock(), self.ttl_seconds):
                self.miss_count += 1
                return None

            self.hit_count += 1
            return entry.location

    def put(self, location: ResolvedLocation) -> None:
        """位置情報を保存（既存の値は置き換える）"""
        with self._lock:
            self._entries[self.CACHE_KEY] = CacheEntry(location=location, resolved_at=self._clock())

        logger.debug(f"Location cached: {location}")

    def clear(self) -> None:
        """キャッシュをクリア"""
        with self._lock:
            self._entries.clear()
            self.hit_count = 0
            self.miss_count = 0

        logger.info("Location cache cleared")

    def get_cache_stats(self) -> dict[str, float]:
        """
        キャッシュ統計を取得

        Returns:
            dict[str, float]: ヒット数、ミス数、ヒット率
        """
        with self._lock:
            total_requests = self.hit_count + self.miss_count
            hit_rate = (self.hit_count / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "cache_size": len(self._entries),
                "hit_count": self.hit_count,
                "miss_count": self.miss_count,
                "total_requests": total_requests,
                "hit_rate_percent": round(hit_rate, 2),
            }
