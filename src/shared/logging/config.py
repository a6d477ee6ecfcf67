"""ロギング設定"""
import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# リクエスト毎にINFOを出すライブラリ
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_logger_configured = False


def setup_logging(
    level: str = "INFO",
    force: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    ロギングを設定

    Args:
        level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        force: 設定済みでも再設定するか（CLIでレベルを上書きする場合）
        stream: 出力先（Noneの場合は標準出力。CLIは結果のJSONと混ざらないよう標準エラー出力を指定）
    """
    global _logger_configured

    if _logger_configured and not force:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logger_configured = True
    logging.getLogger(__name__).debug(f"Logging configured with level: {level}")


def get_logger(name: str) -> logging.Logger:
    """ロガーを取得（通常は__name__を指定）"""
    return logging.getLogger(name)
