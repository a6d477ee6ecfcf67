"""位置情報解決APIサーバー（FastAPI）"""
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .features.delivery.services.tracking_service import DeliveryTrackingService
from .features.location.domain.models import DevicePosition
from .features.location.providers.device_locator import PositionSource, ReportedPositionSource
from .features.location.services.location_service import LocationService
from .infrastructure.config.settings import Settings
from .shared.exceptions.errors import DevicePermissionDeniedError, LocationError
from .shared.logging.config import get_logger, setup_logging
from .shared.utils.datetime_utils import now_utc

# 設定を読み込み
settings = Settings()

# ロギングを設定
setup_logging(level=settings.log_level)
logger = get_logger(__name__)

SERVICE_NAME = "配達位置情報サービス"
SERVICE_VERSION = "1.0.0"

app = FastAPI(
    title=SERVICE_NAME,
    description="IPジオロケーションと端末測位で配達元・配達先の位置を解決するサービス",
    version=SERVICE_VERSION,
)

_location_service: Optional[LocationService] = None


def get_location_service() -> LocationService:
    """サービスを取得（初回呼び出し時に作成）"""
    global _location_service

    if _location_service is None:
        _location_service = LocationService.from_settings(settings)

    return _location_service


@app.on_event("startup")
async def startup_event() -> None:
    """起動時の処理"""
    logger.info("Application starting up")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Project: {settings.project_name}")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """シャットダウン時の処理"""
    global _location_service

    if _location_service is not None:
        await _location_service.aclose()
        _location_service = None

    logger.info("Application shutting down")


@app.get("/")
async def root() -> dict[str, Any]:
    """ルートエンドポイント"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "environment": settings.environment,
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """ヘルスチェックエンドポイント"""
    return {"status": "healthy"}


@app.get("/location/current")
async def current_location(
    service: LocationService = Depends(get_location_service),
) -> dict[str, Any]:
    """プロバイダーチェーンを1パスだけ試して位置を解決"""
    location = await service.get_current_location()
    return location.to_dict()


@app.get("/location")
async def location_with_retry(
    max_attempts: Optional[int] = Query(default=None, ge=1, le=10),
    device_lat: Optional[float] = Query(default=None, ge=-90, le=90),
    device_lon: Optional[float] = Query(default=None, ge=-180, le=180),
    device_accuracy: Optional[float] = Query(default=None, ge=0),
    device_timestamp: Optional[datetime] = Query(default=None),
    service: LocationService = Depends(get_location_service),
) -> dict[str, Any]:
    """
    リトライと端末測位フォールバック付きで位置を解決

    Args:
        max_attempts: 最大試行回数（省略時は設定値）
        device_lat: クライアント端末が報告した緯度（フォールバック用）
        device_lon: クライアント端末が報告した経度（フォールバック用）
        device_accuracy: 測位精度（メートル）
        device_timestamp: 測位時刻（省略時は受信時刻）
    """
    position_source: Optional[PositionSource] = None
    if device_lat is not None and device_lon is not None:
        position_source = ReportedPositionSource(
            DevicePosition(
                latitude=device_lat,
                longitude=device_lon,
                accuracy=device_accuracy,
                timestamp=device_timestamp or now_utc(),
            )
        )

    location = await service.get_location_with_retry(
        max_attempts=max_attempts,
        position_source=position_source,
    )
    return location.to_dict()


@app.get("/location/user")
async def user_location(
    service: LocationService = Depends(get_location_service),
) -> dict[str, Any]:
    """ユーザー位置のシミュレーション（実際のユーザー住所が得られるまでのデモ用）"""
    if settings.is_production:
        logger.warning("Serving simulated user location in production")

    location = await service.get_user_location()
    return {**location.to_dict(), "simulated": True}


@app.get("/location/address")
async def detailed_address(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    service: LocationService = Depends(get_location_service),
) -> dict[str, Any]:
    """座標から表示用住所を取得"""
    address = await service.get_detailed_address(lat, lon)
    return {"latitude": lat, "longitude": lon, "address": address}


@app.get("/location/cached")
async def cached_location(
    service: LocationService = Depends(get_location_service),
) -> dict[str, Any]:
    """キャッシュ済みの位置を取得"""
    location = service.get_cached_location()
    if location is None:
        raise HTTPException(status_code=404, detail="No cached location")

    return location.to_dict()


@app.delete("/location/cache")
async def clear_location_cache(
    service: LocationService = Depends(get_location_service),
) -> dict[str, str]:
    """キャッシュをクリア"""
    service.clear_cache()
    return {"status": "cleared"}


@app.get("/delivery/track")
async def track_delivery(
    max_attempts: Optional[int] = Query(default=None, ge=1, le=10),
    simulate_movement: bool = Query(default=False),
    service: LocationService = Depends(get_location_service),
) -> dict[str, Any]:
    """配達元・配達先の位置、経路、到着見込みを取得"""
    tracker = DeliveryTrackingService(service)
    estimate = await tracker.track(max_attempts=max_attempts, simulate_movement=simulate_movement)
    return estimate.to_dict()


@app.exception_handler(LocationError)
async def location_exception_handler(request: Request, exc: LocationError) -> JSONResponse:
    """位置情報が解決できない場合は再試行可能なエラーとして返す"""
    status_code = 403 if isinstance(exc, DevicePermissionDeniedError) else 503
    logger.error(f"Location resolution failed: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={
            "message": "Location unavailable",
            "detail": str(exc),
            "error": exc.__class__.__name__,
            "retryable": True,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """グローバル例外ハンドラー"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "detail": str(exc)},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
