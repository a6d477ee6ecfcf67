"""カスタム例外定義"""
from typing import Optional, Sequence


class LocationError(Exception):
    """位置情報解決の基底例外"""

    pass


class HTTPError(LocationError):
    """HTTP関連のエラー"""

    pass


class ParsingError(LocationError):
    """レスポンス解析エラー"""

    pass


class GeocodingError(LocationError):
    """逆ジオコーディングエラー（呼び出し元には座標文字列として縮退する）"""

    pass


class ConfigurationError(LocationError):
    """設定エラー"""

    pass


class ProviderError(LocationError):
    """単一プロバイダーの失敗（次のプロバイダーへ進む）"""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ChainExhaustedError(LocationError):
    """全プロバイダーが失敗"""

    def __init__(self, message: str, failures: Optional[Sequence[str]] = None) -> None:
        self.failures = list(failures or [])
        super().__init__(message)


class RetryExhaustedError(LocationError):
    """リトライ回数を使い切った"""

    def __init__(self, message: str, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(message)


class DeviceLocationError(LocationError):
    """端末測位の失敗"""

    pass


class DeviceUnsupportedError(DeviceLocationError):
    """端末測位が利用できない"""

    pass


class DevicePermissionDeniedError(DeviceLocationError):
    """端末測位の許可が拒否された"""

    pass


class DeviceTimeoutError(DeviceLocationError):
    """端末測位がタイムアウトした"""

    pass
