"""アプリケーション設定（Pydantic Settings）"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Project
    project_name: str = Field(
        default="meal-subscription-locator",
        description="プロジェクト名",
    )
    environment: str = Field(
        default="development",
        description="環境 (development, staging, production)",
    )

    # HTTP
    http_timeout: float = Field(
        default=10.0,
        description="外部API呼び出しのデフォルトタイムアウト（秒）",
    )
    http_max_retries: int = Field(
        default=2,
        description="接続失敗時のトランスポート層リトライ回数",
    )
    http_user_agent: str = Field(
        default="MealSubscriptionLocator/1.0 (delivery tracking)",
        description="外部API呼び出しのUser-Agent（Nominatimは識別可能なUAを要求）",
    )

    # IP Geolocation providers
    ipapi_co_url: str = Field(
        default="https://ipapi.co/json/",
        description="ipapi.co の現在IP用エンドポイント",
    )
    ipapi_co_lookup_url: str = Field(
        default="https://ipapi.co/{ip}/json/",
        description="ipapi.co のIP指定エンドポイント",
    )
    ipapi_co_timeout: float = Field(
        default=5.0,
        description="先頭プロバイダー（ipapi.co）のタイムアウト（秒）",
    )
    ipify_url: str = Field(
        default="https://api.ipify.org?format=json",
        description="ipify（IPアドレス取得）エンドポイント",
    )
    freegeoip_url: str = Field(
        default="https://freegeoip.app/json/",
        description="freegeoip エンドポイント",
    )
    ipinfo_url: str = Field(
        default="https://ipinfo.io/json",
        description="ipinfo エンドポイント",
    )
    provider_timeout: float = Field(
        default=15.0,
        description="プロバイダー1回分の試行全体の上限（秒）",
    )

    # Retry
    retry_max_attempts: int = Field(
        default=3,
        description="プロバイダーチェーン全体のリトライ回数",
    )
    retry_base_delay: float = Field(
        default=1.0,
        description="リトライ間隔の基準値（秒、試行回数倍）",
    )

    # Reverse geocoding
    nominatim_url: str = Field(
        default="https://nominatim.openstreetmap.org/reverse",
        description="Nominatim逆ジオコーディングエンドポイント",
    )
    nominatim_requests_per_second: float = Field(
        default=1.0,
        description="Nominatimのレート制限（リクエスト/秒）",
    )

    # Cache
    location_cache_ttl_seconds: float = Field(
        default=300.0,
        description="解決済み位置情報のキャッシュ有効期間（秒）",
    )

    # Device positioning
    device_timeout: float = Field(
        default=10.0,
        description="端末測位のタイムアウト（秒）",
    )
    device_maximum_age: float = Field(
        default=300.0,
        description="許容する端末測位結果の経過時間（秒）",
    )
    device_timezone: Optional[str] = Field(
        default=None,
        description="端末測位時に付与するタイムゾーン（Noneの場合はシステム設定）",
    )

    # Demo
    user_location_jitter: float = Field(
        default=0.0025,
        description="ユーザー位置シミュレーションのずらし幅（度）",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Server
    port: int = Field(
        default=8080,
        description="HTTPサーバーのポート番号",
    )

    @property
    def is_production(self) -> bool:
        """本番環境かどうか"""
        return self.environment.lower() == "production"
