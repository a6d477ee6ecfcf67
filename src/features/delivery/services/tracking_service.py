"""配達追跡サービス"""

import math
import random
from dataclasses import replace
from typing import Optional, Sequence

from ....shared.logging.config import get_logger
from ...location.domain.models import ResolvedLocation
from ...location.services.location_service import LocationService
from ..domain.models import Coordinate, DeliveryEstimate

logger = get_logger(__name__)

# 緯度経度1度あたりのおおよその距離（km）
KM_PER_DEGREE = 111.0
DEFAULT_MINUTES_PER_KM = 3.0
DEFAULT_WAYPOINT_FRACTIONS = (0.3, 0.7)
DEFAULT_COURIER_STEP = 0.001


def build_delivery_route(
    origin: Coordinate,
    destination: Coordinate,
    fractions: Sequence[float] = DEFAULT_WAYPOINT_FRACTIONS,
) -> list[Coordinate]:
    """
    配達元から配達先までの経路（直線上の経由点）を作成

    Args:
        origin: 配達元 (緯度, 経度)
        destination: 配達先 (緯度, 経度)
        fractions: 経由点の位置（0〜1の割合）

    Returns:
        list[Coordinate]: 配達元、経由点、配達先
    """
    origin_lat, origin_lon = origin
    dest_lat, dest_lon = destination

    waypoints = [
        (
            origin_lat + (dest_lat - origin_lat) * fraction,
            origin_lon + (dest_lon - origin_lon) * fraction,
        )
        for fraction in fractions
    ]

    return [origin, *waypoints, destination]


def estimate_distance_km(origin: Coordinate, destination: Coordinate) -> float:
    """
    2点間のおおよその距離（km）

    度単位の平面距離に1度あたりの距離を掛けた概算。短距離の配達用。
    """
    return math.hypot(origin[0] - destination[0], origin[1] - destination[1]) * KM_PER_DEGREE


def estimate_delivery_minutes(
    origin: Coordinate,
    destination: Coordinate,
    minutes_per_km: float = DEFAULT_MINUTES_PER_KM,
) -> int:
    """到着見込み時間（分、0.5 は切り上げ）"""
    return math.floor(estimate_distance_km(origin, destination) * minutes_per_km + 0.5)


def simulate_courier_step(
    location: ResolvedLocation,
    step: float = DEFAULT_COURIER_STEP,
    rng: Optional[random.Random] = None,
) -> ResolvedLocation:
    """
    配達元の移動をシミュレート（デモ用、各軸 ±step/2 度）

    Args:
        location: 現在の配達元
        step: 移動幅（度）
        rng: 乱数生成器
    """
    generator = rng or random.Random()

    return replace(
        location,
        latitude=location.latitude + (generator.random() - 0.5) * step,
        longitude=location.longitude + (generator.random() - 0.5) * step,
    )


class DeliveryTrackingService:
    """配達元と配達先を解決し、経路と到着見込みを返す"""

    def __init__(
        self,
        location_service: LocationService,
        minutes_per_km: float = DEFAULT_MINUTES_PER_KM,
    ) -> None:
        """
        Args:
            location_service: 位置情報解決サービス
            minutes_per_km: 1kmあたりの所要時間（分）
        """
        self.location_service = location_service
        self.minutes_per_km = minutes_per_km

    async def track(
        self,
        max_attempts: Optional[int] = None,
        simulate_movement: bool = False,
    ) -> DeliveryEstimate:
        """
        配達状況を算出

        Args:
            max_attempts: 配達元の解決の最大試行回数（Noneの場合はサービスの設定値）
            simulate_movement: 配達元の移動をシミュレートするか（デモ用）

        Returns:
            DeliveryEstimate: 位置・経路・到着見込み

        Raises:
            LocationError: 位置が解決できない場合
        """
        courier = await self.location_service.get_location_with_retry(max_attempts)
        if simulate_movement:
            courier = simulate_courier_step(courier)
        destination = await self.location_service.get_user_location()

        return self.estimate(courier, destination)

    def estimate(self, courier: ResolvedLocation, destination: ResolvedLocation) -> DeliveryEstimate:
        """解決済みの2地点から到着見込みを算出"""
        origin = courier.to_tuple()
        target = destination.to_tuple()

        estimate = DeliveryEstimate(
            courier=courier,
            destination=destination,
            route=build_delivery_route(origin, target),
            distance_km=estimate_distance_km(origin, target),
            estimated_minutes=estimate_delivery_minutes(origin, target, self.minutes_per_km),
        )

        logger.info(
            f"Delivery estimate: {estimate.distance_km:.2f}km, {estimate.estimated_minutes} minutes"
        )

        return estimate
