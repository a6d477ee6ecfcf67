"""CLIエントリーポイントのテスト"""

import json

import pytest

from src import entrypoint
from src.features.location.services.location_service import LocationService
from src.features.location.services.provider_chain import ProviderChain


class ServiceFactory:
    """from_settings の差し替え"""

    def __init__(self, service: LocationService) -> None:
        self.service = service
        self.settings = None

    def from_settings(self, settings):
        self.settings = settings
        return self.service


@pytest.fixture
def factory(monkeypatch, make_provider, stub_geocoder, dubai) -> ServiceFactory:
    service = LocationService(ProviderChain([make_provider("only", result=dubai)], stub_geocoder), stub_geocoder)
    factory = ServiceFactory(service)
    monkeypatch.setattr(entrypoint, "LocationService", factory)
    return factory


def test_retry_mode_prints_location(factory, capsys, tmp_path) -> None:
    exit_code = entrypoint.main(
        ["retry", "--max-attempts", "2", "--env-file", str(tmp_path / "missing.env"), "--log-level", "WARNING"]
    )

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["city"] == "Dubai"
    assert factory.settings.log_level == "WARNING"


def test_address_mode_prints_address(factory, capsys, tmp_path) -> None:
    exit_code = entrypoint.main(
        ["address", "--lat", "25.2", "--lon", "55.27", "--env-file", str(tmp_path / "missing.env")]
    )

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["address"] == "Sheikh Zayed Rd, Dubai, United Arab Emirates"


def test_address_mode_requires_coordinates() -> None:
    with pytest.raises(SystemExit) as exc_info:
        entrypoint.main(["address", "--lat", "25.2"])

    assert exc_info.value.code == 2


def test_location_failure_returns_one(monkeypatch, make_provider, stub_geocoder, tmp_path) -> None:
    service = LocationService(
        ProviderChain([make_provider("down", error="HTTP 503")], stub_geocoder),
        stub_geocoder,
    )
    monkeypatch.setattr(entrypoint, "LocationService", ServiceFactory(service))

    assert entrypoint.main(["current", "--env-file", str(tmp_path / "missing.env")]) == 1


def test_zero_max_attempts_is_rejected(monkeypatch, make_provider, stub_geocoder, tmp_path) -> None:
    """--max-attempts 0 は設定値に置き換えず失敗させる"""
    provider = make_provider("only", result=None)
    service = LocationService(ProviderChain([provider], stub_geocoder), stub_geocoder)
    monkeypatch.setattr(entrypoint, "LocationService", ServiceFactory(service))

    exit_code = entrypoint.main(
        ["retry", "--max-attempts", "0", "--env-file", str(tmp_path / "missing.env")]
    )

    assert exit_code == 1
    assert provider.calls == 0
