"""位置情報解決機能のドメインモデル"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from ....shared.utils.datetime_utils import DEFAULT_TIMEZONE, now_utc
from ....shared.utils.text import UNKNOWN, format_coordinates

# 端末測位で解決した場合の送信元IP・ISPの代替値
BROWSER_GPS = "Browser GPS"


@dataclass(frozen=True)
class ResolvedLocation:
    """
    解決済みの位置情報（不変）

    新しい解決結果が得られた場合は置き換える（変更しない）。
    住所が解決できなかった場合は座標文字列になる。
    """

    latitude: float  # 緯度
    longitude: float  # 経度
    address: str = ""  # 表示用住所
    source_ip: str = UNKNOWN  # 位置の導出元IP（端末測位時は BROWSER_GPS）
    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN
    timezone: str = DEFAULT_TIMEZONE  # IANAタイムゾーン名
    isp: Optional[str] = None  # 回線事業者
    provider: Optional[str] = None  # 解決したプロバイダー名

    def __post_init__(self) -> None:
        if not self.address and self.latitude is not None and self.longitude is not None:
            object.__setattr__(self, "address", format_coordinates(self.latitude, self.longitude))

    def __repr__(self) -> str:
        return f"ResolvedLocation(lat={self.latitude}, lon={self.longitude}, address={self.address!r})"

    def to_tuple(self) -> tuple[float, float]:
        """(緯度, 経度)のタプルとして返す"""
        return (self.latitude, self.longitude)

    def to_dict(self) -> dict[str, Any]:
        """JSON出力用の辞書に変換"""
        return asdict(self)


@dataclass(frozen=True)
class CacheEntry:
    """キャッシュされた位置情報と解決時刻"""

    location: ResolvedLocation
    resolved_at: float  # 単調時計の秒

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        """有効期間内か"""
        return now - self.resolved_at < ttl_seconds


@dataclass(frozen=True)
class PositionOptions:
    """端末測位のオプション"""

    timeout: float = 10.0  # 秒
    enable_high_accuracy: bool = False
    maximum_age: float = 300.0  # 許容するキャッシュ済み測位結果の経過秒数


@dataclass(frozen=True)
class DevicePosition:
    """端末から取得した生の測位結果"""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None  # メートル
    timestamp: datetime = field(default_factory=now_utc)
