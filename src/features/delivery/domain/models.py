"""配達追跡機能のドメインモデル"""
from dataclasses import dataclass, field
from typing import Any

from ...location.domain.models import ResolvedLocation

Coordinate = tuple[float, float]


@dataclass(frozen=True)
class DeliveryEstimate:
    """配達元（管理者）と配達先（ユーザー）の位置、経路、到着見込み"""

    courier: ResolvedLocation  # 配達元
    destination: ResolvedLocation  # 配達先
    route: list[Coordinate] = field(default_factory=list)  # 経由点を含む経路
    distance_km: float = 0.0  # おおよその距離
    estimated_minutes: int = 0  # 到着見込み（分）

    def to_dict(self) -> dict[str, Any]:
        """JSON出力用の辞書に変換"""
        return {
            "courier": self.courier.to_dict(),
            "destination": self.destination.to_dict(),
            "route": [list(point) for point in self.route],
            "distance_km": round(self.distance_km, 3),
            "estimated_minutes": self.estimated_minutes,
            "estimated_time": f"{self.estimated_minutes} minutes",
        }
