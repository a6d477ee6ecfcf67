"""LocationCache のテスト"""

import threading

import pytest

from src.features.location.domain.models import ResolvedLocation
from src.features.location.services.location_cache import LocationCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> LocationCache:
    return LocationCache(ttl_seconds=300, clock=clock)


def test_get_returns_none_when_empty(cache: LocationCache) -> None:
    assert cache.get() is None


def test_get_returns_last_put_within_ttl(cache: LocationCache, clock: FakeClock, dubai) -> None:
    cache.put(dubai)
    clock.now += 299.9

    assert cache.get() is dubai


def test_get_returns_none_after_ttl(cache: LocationCache, clock: FakeClock, dubai) -> None:
    """有効期限は読み出し時に判定"""
    cache.put(dubai)
    clock.now += 300.0

    assert cache.get() is None


def test_put_supersedes_previous_entry(cache: LocationCache, clock: FakeClock, dubai) -> None:
    cache.put(dubai)
    clock.now += 200
    newer = ResolvedLocation(latitude=24.4539, longitude=54.3773, city="Abu Dhabi")
    cache.put(newer)
    clock.now += 200

    assert cache.get() is newer


def test_clear_removes_entry(cache: LocationCache, dubai) -> None:
    cache.put(dubai)
    cache.clear()

    assert cache.get() is None


def test_cache_stats(cache: LocationCache, dubai) -> None:
    cache.get()
    cache.put(dubai)
    cache.get()
    cache.get()

    stats = cache.get_cache_stats()

    assert stats["cache_size"] == 1
    assert stats["hit_count"] == 2
    assert stats["miss_count"] == 1
    assert stats["hit_rate_percent"] == pytest.approx(66.67)


def test_concurrent_get_and_put(dubai) -> None:
    """複数スレッドからの get / put でも統計が一致する"""
    cache = LocationCache(ttl_seconds=300)
    errors: list[Exception] = []

    def worker() -> None:
        try:
            for _ in range(200):
                cache.put(dubai)
                assert cache.get() is dubai
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    stats = cache.get_cache_stats()

    assert errors == []
    assert stats["total_requests"] == 8 * 200
    assert stats["hit_count"] == 8 * 200
    assert stats["cache_size"] == 1
