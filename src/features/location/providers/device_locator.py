"""端末測位による最終フォールバック"""
import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ....shared.exceptions.errors import (
    DeviceLocationError,
    DevicePermissionDeniedError,
    DeviceTimeoutError,
    DeviceUnsupportedError,
)
from ....shared.logging.config import get_logger
from ....shared.utils.datetime_utils import age_seconds, local_timezone_name
from ..domain.models import BROWSER_GPS, DevicePosition, PositionOptions, ResolvedLocation
from ..domain.validator import LocationValidator
from .nominatim_geocoder import NominatimGeocoder

logger = get_logger(__name__)

# W3C Geolocation API の GeolocationPositionError.code
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

SuccessCallback = Callable[[DevicePosition], None]
ErrorCallback = Callable[[int, str], None]
RequestPosition = Callable[[SuccessCallback, ErrorCallback, PositionOptions], None]


def error_from_code(code: int, message: str = "") -> DeviceLocationError:
    """
    測位APIのエラーコードを型付き例外に変換

    Args:
        code: エラーコード
        message: エラーメッセージ

    Returns:
        DeviceLocationError: 対応する例外
    """
    detail = message or "no detail"

    if code == PERMISSION_DENIED:
        return DevicePermissionDeniedError(f"Device positioning permission denied: {detail}")
    if code == TIMEOUT:
        return DeviceTimeoutError(f"Device positioning timed out: {detail}")
    if code == POSITION_UNAVAILABLE:
        return DeviceLocationError(f"Device position unavailable: {detail}")

    return DeviceLocationError(f"Device positioning failed (code={code}): {detail}")


class PositionSource(ABC):
    """端末のネイティブ測位機能"""

    @abstractmethod
    async def get_current_position(self, options: PositionOptions) -> DevicePosition:
        """
        1回だけ測位する

        Raises:
            DeviceLocationError: 測位失敗時
        """
        pass


class CallbackPositionSource(PositionSource):
    """
    コールバック形式の測位APIを awaitable に変換する

    request_position(on_success, on_error, options) を呼び出し、
    どちらかのコールバックが呼ばれるまで待つ。コールバックは別スレッドから呼ばれてもよい。
    """

    def __init__(self, request_position: RequestPosition) -> None:
        """
        Args:
            request_position: 測位要求関数
        """
        self._request_position = request_position

    async def get_current_position(self, options: PositionOptions) -> DevicePosition:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[DevicePosition] = loop.create_future()

        def _resolve(position: DevicePosition) -> None:
            if not future.done():
                future.set_result(position)

        def _reject(error: DeviceLocationError) -> None:
            if not future.done():
                future.set_exception(error)

        def on_success(position: DevicePosition) -> None:
            loop.call_soon_threadsafe(_resolve, position)

        def on_error(code: int, message: str = "") -> None:
            loop.call_soon_threadsafe(_reject, error_from_code(code, message))

        self._request_position(on_success, on_error, options)

        return await future


class ReportedPositionSource(PositionSource):
    """クライアント端末（ブラウザの Geolocation API など）が報告した測位結果"""

    def __init__(self, position: DevicePosition) -> None:
        self.position = position

    async def get_current_position(self, options: PositionOptions) -> DevicePosition:
        age = age_seconds(self.position.timestamp)
        if age > options.maximum_age:
            raise DeviceLocationError(
                f"Reported device position is too old ({age:.0f}s > {options.maximum_age:.0f}s)"
            )

        return self.position


class DeviceLocator:
    """
    端末測位による位置解決

    プロバイダーチェーンとリトライを使い切った後にのみ使用する。
    失敗時は型付き例外を送出し、固定の既定位置で代替しない。
    """

    def __init__(
        self,
        geocoder: NominatimGeocoder,
        source: Optional[PositionSource] = None,
        options: Optional[PositionOptions] = None,
        timezone_name: Optional[str] = None,
        validator: Optional[LocationValidator] = None,
    ) -> None:
        """
        Args:
            geocoder: 逆ジオコーダー
            source: 既定の測位ソース（Noneの場合は呼び出し時に指定が必要）
            options: 測位オプション
            timezone_name: 付与するタイムゾーン（Noneの場合はシステム設定）
            validator: 座標検証
        """
        self.geocoder = geocoder
        self.source = source
        self.options = options or PositionOptions()
        self.timezone_name = timezone_name
        self.validator = validator or LocationValidator()

    async def resolve_via_device(self, source: Optional[PositionSource] = None) -> ResolvedLocation:
        """
        端末測位で位置を解決

        Args:
            source: 今回使用する測位ソース（Noneの場合は既定のソース）

        Returns:
            ResolvedLocation: 住所付きの位置情報

        Raises:
            DeviceUnsupportedError: 測位ソースがない場合
            DevicePermissionDeniedError: 許可が拒否された場合
            DeviceTimeoutError: タイムアウトした場合
            DeviceLocationError: その他の測位失敗
        """
        position_source = source or self.source
        if position_source is None:
            raise DeviceUnsupportedError("Device positioning is not available")

        logger.info("Requesting device position fix")

        try:
            position = await asyncio.wait_for(
                position_source.get_current_position(self.options),
                timeout=self.options.timeout,
            )
        except asyncio.TimeoutError as e:
            raise DeviceTimeoutError(
                f"Device positioning timed out after {self.options.timeout}s"
            ) from e

        if not self.validator.is_valid_coordinates(position.latitude, position.longitude):
            raise DeviceLocationError(
                f"Device returned invalid coordinates: ({position.latitude}, {position.longitude})"
            )

        address = await self.geocoder.reverse_geocode(position.latitude, position.longitude)

        location = ResolvedLocation(
            latitude=position.latitude,
            longitude=position.longitude,
            address=address,
            source_ip=BROWSER_GPS,
            timezone=self.timezone_name or local_timezone_name(),
            isp=BROWSER_GPS,
            provider="device",
        )

        logger.info(f"Resolved location via device: {location}")

        return location
