"""配達追跡のテスト"""

import random

import pytest

from src.features.location.domain.models import ResolvedLocation
from src.features.location.services.location_service import LocationService
from src.features.location.services.provider_chain import ProviderChain
from src.features.delivery.services.tracking_service import (
    DeliveryTrackingService,
    build_delivery_route,
    estimate_delivery_minutes,
    estimate_distance_km,
    simulate_courier_step,
)


def test_route_has_two_waypoints_between_endpoints() -> None:
    route = build_delivery_route((25.0, 55.0), (25.1, 55.2))

    assert len(route) == 4
    assert route[0] == (25.0, 55.0)
    assert route[-1] == (25.1, 55.2)
    assert route[1] == pytest.approx((25.03, 55.06))
    assert route[2] == pytest.approx((25.07, 55.14))


def test_distance_and_minutes() -> None:
    """0.01度 ≒ 1.11km、1kmあたり3分"""
    origin = (25.2048, 55.2708)
    destination = (25.2148, 55.2708)

    assert estimate_distance_km(origin, destination) == pytest.approx(1.11)
    assert estimate_delivery_minutes(origin, destination) == 3
    assert estimate_delivery_minutes(origin, origin) == 0


def test_courier_step_is_bounded(dubai) -> None:
    moved = simulate_courier_step(dubai, step=0.001, rng=random.Random(3))

    assert abs(moved.latitude - dubai.latitude) <= 0.0005
    assert abs(moved.longitude - dubai.longitude) <= 0.0005
    assert moved.city == dubai.city


def test_estimate_to_dict(dubai) -> None:
    destination = ResolvedLocation(latitude=25.2148, longitude=55.2708, city="Dubai")
    tracker = DeliveryTrackingService(location_service=None)  # type: ignore[arg-type]

    payload = tracker.estimate(dubai, destination).to_dict()

    assert payload["estimated_minutes"] == 3
    assert payload["estimated_time"] == "3 minutes"
    assert payload["distance_km"] == pytest.approx(1.11)
    assert len(payload["route"]) == 4
    assert payload["courier"]["city"] == "Dubai"
    assert payload["destination"]["latitude"] == 25.2148


@pytest.mark.asyncio
async def test_track_resolves_courier_and_destination(make_provider, stub_geocoder, dubai) -> None:
    service = LocationService(
        ProviderChain([make_provider("only", result=dubai)], stub_geocoder),
        stub_geocoder,
        rng=random.Random(11),
    )

    estimate = await DeliveryTrackingService(service).track(max_attempts=1)

    assert estimate.courier.to_tuple() == dubai.to_tuple()
    assert abs(estimate.destination.latitude - dubai.latitude) <= 0.0025
    assert estimate.route[0] == dubai.to_tuple()
    assert estimate.route[-1] == estimate.destination.to_tuple()
    # 約500m以内なので数分で到着
    assert 0 <= estimate.estimated_minutes <= 2


def test_minutes_round_half_up() -> None:
    """1.5度 × 111km = 166.5分 → 167分"""
    assert estimate_delivery_minutes((0.0, 0.0), (1.5, 0.0), minutes_per_km=1.0) == 167
