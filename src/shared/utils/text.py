"""テキスト処理ユーティリティ"""

import re
from typing import Any, Optional

UNKNOWN = "Unknown"


def normalize_text(text: Optional[str]) -> Optional[str]:
    """
    テキストを正規化

    - 前後の空白を除去
    - 連続する空白を1つに
    """
    if not text:
        return None

    text = re.sub(r"\s+", " ", text)
    text = text.strip()

    return text if text else None


def text_or_default(value: Any, default: str = UNKNOWN) -> str:
    """
    プロバイダーの値を文字列化（空・欠損の場合はデフォルト）

    Args:
        value: 任意の値
        default: 欠損時の値
    """
    if value is None:
        return default

    return normalize_text(str(value)) or default


def format_coordinates(latitude: float, longitude: float) -> str:
    """座標を "lat, lon"（小数点以下4桁）の文字列にする"""
    return f"{latitude:.4f}, {longitude:.4f}"
