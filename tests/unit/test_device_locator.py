"""端末測位フォールバックのテスト"""

import asyncio
import threading
from datetime import timedelta

import pytest

from src.features.location.domain.models import BROWSER_GPS, DevicePosition, PositionOptions
from src.features.location.providers.device_locator import (
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    CallbackPositionSource,
    DeviceLocator,
    ReportedPositionSource,
    error_from_code,
)
from src.shared.exceptions.errors import (
    DeviceLocationError,
    DevicePermissionDeniedError,
    DeviceTimeoutError,
    DeviceUnsupportedError,
)
from src.shared.utils.datetime_utils import now_utc


@pytest.fixture
def locator(stub_geocoder) -> DeviceLocator:
    return DeviceLocator(
        stub_geocoder,
        options=PositionOptions(timeout=0.5, maximum_age=300),
        timezone_name="Asia/Dubai",
    )


def test_error_codes_map_to_typed_errors() -> None:
    assert isinstance(error_from_code(PERMISSION_DENIED, "denied"), DevicePermissionDeniedError)
    assert isinstance(error_from_code(TIMEOUT), DeviceTimeoutError)

    unavailable = error_from_code(POSITION_UNAVAILABLE, "no fix")
    assert type(unavailable) is DeviceLocationError
    assert "no fix" in str(unavailable)


@pytest.mark.asyncio
async def test_reported_position_is_stamped_as_browser_gps(locator, stub_geocoder) -> None:
    """端末測位の結果は source_ip / isp に Browser GPS を持つ"""
    source = ReportedPositionSource(DevicePosition(latitude=25.1972, longitude=55.2744, accuracy=12.0))

    location = await locator.resolve_via_device(source)

    assert location.to_tuple() == (25.1972, 55.2744)
    assert location.source_ip == BROWSER_GPS
    assert location.isp == BROWSER_GPS
    assert location.timezone == "Asia/Dubai"
    assert location.provider == "device"
    assert location.address == stub_geocoder.address
    assert stub_geocoder.calls == [(25.1972, 55.2744)]


@pytest.mark.asyncio
async def test_stale_reported_position_is_rejected(locator) -> None:
    stale = DevicePosition(
        latitude=25.1972,
        longitude=55.2744,
        timestamp=now_utc() - timedelta(minutes=10),
    )

    with pytest.raises(DeviceLocationError):
        await locator.resolve_via_device(ReportedPositionSource(stale))


@pytest.mark.asyncio
async def test_invalid_device_coordinates_are_rejected(locator, stub_geocoder) -> None:
    source = ReportedPositionSource(DevicePosition(latitude=0.0, longitude=0.0))

    with pytest.raises(DeviceLocationError):
        await locator.resolve_via_device(source)

    assert stub_geocoder.calls == []


@pytest.mark.asyncio
async def test_missing_source_is_unsupported(locator) -> None:
    with pytest.raises(DeviceUnsupportedError):
        await locator.resolve_via_device()


@pytest.mark.asyncio
async def test_callback_success_from_another_thread(locator) -> None:
    """別スレッドからのコールバックでも解決できる"""
    received_options = []

    def request_position(on_success, on_error, options) -> None:
        received_options.append(options)
        position = DevicePosition(latitude=-33.8688, longitude=151.2093)
        threading.Thread(target=on_success, args=(position,)).start()

    location = await locator.resolve_via_device(CallbackPositionSource(request_position))

    assert location.to_tuple() == (-33.8688, 151.2093)
    assert received_options == [locator.options]
    assert received_options[0].enable_high_accuracy is False


@pytest.mark.asyncio
async def test_callback_permission_denied(locator) -> None:
    def request_position(on_success, on_error, options) -> None:
        on_error(PERMISSION_DENIED, "User denied Geolocation")

    with pytest.raises(DevicePermissionDeniedError):
        await locator.resolve_via_device(CallbackPositionSource(request_position))


@pytest.mark.asyncio
async def test_callback_position_unavailable(locator) -> None:
    def request_position(on_success, on_error, options) -> None:
        on_error(POSITION_UNAVAILABLE, "")

    with pytest.raises(DeviceLocationError) as exc_info:
        await locator.resolve_via_device(CallbackPositionSource(request_position))

    assert not isinstance(exc_info.value, (DevicePermissionDeniedError, DeviceTimeoutError))


@pytest.mark.asyncio
async def test_silent_source_times_out(stub_geocoder) -> None:
    """コールバックが呼ばれない場合は DeviceTimeoutError"""
    locator = DeviceLocator(stub_geocoder, options=PositionOptions(timeout=0.05))

    def request_position(on_success, on_error, options) -> None:
        pass

    with pytest.raises(DeviceTimeoutError):
        await locator.resolve_via_device(CallbackPositionSource(request_position))


@pytest.mark.asyncio
async def test_late_callback_after_timeout_is_ignored(stub_geocoder) -> None:
    locator = DeviceLocator(stub_geocoder, options=PositionOptions(timeout=0.05))
    callbacks = []

    def request_position(on_success, on_error, options) -> None:
        callbacks.append(on_success)

    with pytest.raises(DeviceTimeoutError):
        await locator.resolve_via_device(CallbackPositionSource(request_position))

    callbacks[0](DevicePosition(latitude=1.0, longitude=2.0))
    await asyncio.sleep(0)
