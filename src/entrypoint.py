"""CLIエントリーポイント"""
import argparse
import asyncio
import json
import sys
from typing import Any, Optional

from .features.location.services.location_service import LocationService
from .infrastructure.config.settings import Settings
from .shared.exceptions.errors import LocationError
from .shared.logging.config import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """引数パーサーを作成"""
    parser = argparse.ArgumentParser(description="配達位置情報の解決ツール")

    parser.add_argument(
        "mode",
        choices=["current", "retry", "user", "address"],
        help="current: 1パス解決 / retry: リトライ付き解決 / user: ユーザー位置シミュレーション / address: 逆ジオコーディング",
    )

    parser.add_argument("--lat", type=float, help="緯度（address モード用）")
    parser.add_argument("--lon", type=float, help="経度（address モード用）")

    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="最大試行回数（retry モード用、デフォルト: 設定値）",
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="環境変数ファイルのパス（デフォルト: .env）",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="ログレベル",
    )

    return parser


async def run(args: argparse.Namespace, settings: Settings) -> Any:
    """
    指定モードで解決を実行

    Returns:
        Any: JSON出力する値
    """
    service = LocationService.from_settings(settings)

    try:
        if args.mode == "current":
            return (await service.get_current_location()).to_dict()

        if args.mode == "retry":
            return (await service.get_location_with_retry(args.max_attempts)).to_dict()

        if args.mode == "user":
            return (await service.get_user_location()).to_dict()

        address = await service.get_detailed_address(args.lat, args.lon)
        return {"latitude": args.lat, "longitude": args.lon, "address": address}

    finally:
        await service.aclose()


def main(argv: Optional[list[str]] = None) -> int:
    """
    メインエントリーポイント

    Returns:
        int: 終了コード（0: 成功, 1: 失敗）
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode == "address" and (args.lat is None or args.lon is None):
        parser.error("address mode requires --lat and --lon")

    try:
        # 設定を読み込み
        settings = Settings(_env_file=args.env_file)

        # ログレベルを上書き
        if args.log_level:
            settings.log_level = args.log_level

        setup_logging(level=settings.log_level, force=True, stream=sys.stderr)

        logger.info(f"Resolving location (mode={args.mode})")

        result = asyncio.run(run(args, settings))
        print(json.dumps(result, ensure_ascii=False, indent=2))

        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130  # SIGINT
    except LocationError as e:
        logger.error(f"Location resolution failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Application failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
