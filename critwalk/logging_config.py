# -*- coding: utf-8 -*-
"""
日誌設定 - 主控台與每日輪替檔案
"""

import os
import logging
import logging.handlers

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_initialized = False


def setup_logging(force: bool = False) -> None:
    """設定 root logger（重複呼叫不會重複加入 handler）"""
    global _initialized
    if _initialized and not force:
        return
    
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers.clear()
    
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    
    if settings.LOG_DIR:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=os.path.join(settings.LOG_DIR, "critwalk.log"),
            when="midnight",
            interval=1,
            backupCount=settings.LOG_RETENTION_DAYS,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    
    if settings.CONSOLE_LOGGING:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    
    _initialized = True
