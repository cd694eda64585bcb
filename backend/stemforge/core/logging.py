"""流程日誌工具。"""
from __future__ import annotations

import sys
from typing import Any

from loguru import logger

from stemforge.core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[stage]}</cyan> | {message}"
)


def configure_logging(level: str | None = None) -> None:
    """設定 loguru 輸出格式與層級。"""

    logger.remove()
    logger.configure(extra={"stage": "-"})
    logger.add(sys.stderr, level=level or settings.log_level, format=LOG_FORMAT)


def emit_log(stage: str, message: str, **payload: Any) -> None:
    """輸出流程相關日誌，便於追蹤。"""

    logger.bind(stage=stage, **payload).info(message)


def emit_error(stage: str, message: str, **payload: Any) -> None:
    """輸出流程錯誤日誌，附帶例外堆疊。"""

    logger.bind(stage=stage, **payload).opt(exception=True).error(message)
