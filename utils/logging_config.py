# utils/logging_config.py
"""loguruのログ出力先をアプリケーション起動時に一度だけ設定します。"""
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """ログの出力先とレベルを設定する。

    Args:
        level (str): 出力する最小ログレベル。
        log_file (Optional[str]): 指定した場合、ローテーション付きでファイルにも出力する。
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    if log_file:
        logger.add(log_file, level=level.upper(), format=LOG_FORMAT,
                   rotation="5 MB", retention=5, encoding="utf-8")
