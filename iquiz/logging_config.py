"""
logging_config.py
======================

ロガーの初期化。app.py と tools/ から 1 回だけ呼ぶ。
各モジュールは logging.getLogger(__name__) を使う。
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(
    name: str = "iquiz", level: Optional[Union[int, str]] = None
) -> logging.Logger:
    """
    name のロガーにストリームハンドラを 1 つだけ付ける。

    level を省略した場合は環境変数 IQUIZ_LOG_LEVEL（既定 INFO）。
    """
    if level is None:
        level = os.getenv("IQUIZ_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(ch)
    return logger
