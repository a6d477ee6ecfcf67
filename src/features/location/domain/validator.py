"""位置情報の妥当性検証"""
import math
from typing import Optional

from .models import ResolvedLocation


class LocationValidator:
    """
    構造的に不正な、または意味のない座標を弾く

    住所の品質は判定基準に含めない。
    """

    @staticmethod
    def is_valid_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
        """
        座標が有効か

        Args:
            latitude: 緯度
            longitude: 経度

        Returns:
            bool: 有効な場合True
        """
        if latitude is None or longitude is None:
            return False

        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError):
            return False

        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False

        if not -90.0 <= lat <= 90.0:
            return False
        if not -180.0 <= lon <= 180.0:
            return False

        # (0, 0) はIPジオロケーションAPIの「見つからない」の代替値
        if lat == 0.0 and lon == 0.0:
            return False

        return True

    def is_valid(self, location: Optional[ResolvedLocation]) -> bool:
        """
        解決結果が有効か

        Args:
            location: 候補の位置情報

        Returns:
            bool: 有効な場合True
        """
        if location is None:
            return False

        return self.is_valid_coordinates(location.latitude, location.longitude)
