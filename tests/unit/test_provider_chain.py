"""ProviderChain のテスト"""

import asyncio
from typing import Optional

import pytest

from src.features.location.domain.models import ResolvedLocation
from src.features.location.providers.base import AbstractLocationProvider
from src.features.location.services.provider_chain import ProviderChain
from src.shared.exceptions.errors import ChainExhaustedError


class HangingProvider(AbstractLocationProvider):
    """応答しないプロバイダー"""

    name = "hanging"

    def __init__(self) -> None:
        super().__init__(http_client=None, url="stub://hanging")  # type: ignore[arg-type]

    async def _fetch(self) -> Optional[ResolvedLocation]:
        await asyncio.sleep(60)
        return None


@pytest.mark.asyncio
async def test_first_valid_provider_short_circuits(make_provider, stub_geocoder, dubai) -> None:
    """1, 2 が失敗し 3 が成功した場合、3 の結果を返し 4 は呼ばない"""
    first = make_provider("first", error="HTTP 500")
    second = make_provider("second", result=None)
    third = make_provider("third", result=dubai)
    fourth = make_provider("fourth", result=dubai)

    chain = ProviderChain([first, second, third, fourth], stub_geocoder)

    location = await chain.resolve()

    assert location.to_tuple() == dubai.to_tuple()
    assert location.address == "Sheikh Zayed Rd, Dubai, United Arab Emirates"
    assert [first.calls, second.calls, third.calls, fourth.calls] == [1, 1, 1, 0]
    assert stub_geocoder.calls == [(25.2048, 55.2708)]


@pytest.mark.asyncio
async def test_invalid_candidate_is_skipped(make_provider, stub_geocoder, dubai) -> None:
    """(0, 0) の候補は検証で弾かれ次へ進む"""
    null_island = ResolvedLocation(latitude=0.0, longitude=0.0)
    chain = ProviderChain(
        [make_provider("zero", result=null_island), make_provider("good", result=dubai)],
        stub_geocoder,
    )

    location = await chain.resolve()

    assert location.to_tuple() == dubai.to_tuple()
    assert stub_geocoder.calls == [(25.2048, 55.2708)]


@pytest.mark.asyncio
async def test_all_providers_failing_raises_chain_exhausted(make_provider, stub_geocoder) -> None:
    chain = ProviderChain(
        [
            make_provider("a", error="HTTP 503"),
            make_provider("b", result=None),
            make_provider("c", result=ResolvedLocation(latitude=95.0, longitude=10.0)),
        ],
        stub_geocoder,
    )

    with pytest.raises(ChainExhaustedError) as exc_info:
        await chain.resolve()

    assert str(exc_info.value) == "All location providers failed"
    assert exc_info.value.failures == [
        "a: HTTP 503",
        "b: no coordinates",
        "c: invalid coordinates",
    ]
    assert stub_geocoder.calls == []


@pytest.mark.asyncio
async def test_hanging_provider_does_not_block_chain(make_provider, stub_geocoder, dubai) -> None:
    """応答しないプロバイダーはタイムアウトで打ち切られる"""
    chain = ProviderChain(
        [HangingProvider(), make_provider("good", result=dubai)],
        stub_geocoder,
        provider_timeout=0.05,
    )

    location = await chain.resolve()

    assert location.to_tuple() == dubai.to_tuple()


def test_empty_chain_is_rejected(stub_geocoder) -> None:
    with pytest.raises(ValueError):
        ProviderChain([], stub_geocoder)
