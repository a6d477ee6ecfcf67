"""日時・タイムゾーン関連ユーティリティ"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytz

DEFAULT_TIMEZONE = "UTC"

_ZONEINFO_MARKER = "zoneinfo/"


def now_utc() -> datetime:
    """現在のUTC時間を取得"""
    return datetime.now(timezone.utc)


def is_valid_timezone(name: Optional[str]) -> bool:
    """IANAタイムゾーン名として有効か"""
    return bool(name) and name in pytz.all_timezones_set


def normalize_timezone(name: Optional[str], default: str = DEFAULT_TIMEZONE) -> str:
    """
    タイムゾーン名を正規化

    Args:
        name: プロバイダーが返したタイムゾーン名
        default: 無効な場合の値

    Returns:
        有効なIANAタイムゾーン名
    """
    if name and is_valid_timezone(name.strip()):
        return name.strip()
    return default


def local_timezone_name() -> str:
    """
    ローカルシステムのIANAタイムゾーン名を取得

    TZ環境変数 → /etc/timezone → /etc/localtime のリンク先 の順に確認し、
    いずれも使えない場合は"UTC"を返す
    """
    tz_env = os.environ.get("TZ", "").lstrip(":")
    if is_valid_timezone(tz_env):
        return tz_env

    timezone_file = Path("/etc/timezone")
    try:
        candidate = timezone_file.read_text(encoding="utf-8").strip()
        if is_valid_timezone(candidate):
            return candidate
    except OSError:
        pass

    localtime = Path("/etc/localtime")
    try:
        target = str(localtime.resolve())
        if _ZONEINFO_MARKER in target:
            candidate = target.split(_ZONEINFO_MARKER, 1)[1]
            if is_valid_timezone(candidate):
                return candidate
    except OSError:
        pass

    return DEFAULT_TIMEZONE


def age_seconds(timestamp: datetime, now: Optional[datetime] = None) -> float:
    """
    タイムスタンプからの経過秒数

    Args:
        timestamp: 対象時刻（タイムゾーンなしはUTCとして扱う）
        now: 基準時刻（Noneの場合は現在時刻）
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    reference = now or now_utc()
    return (reference - timestamp).total_seconds()
