# -*- coding: utf-8 -*-
"""
時間工具 - 資料庫內一律存 naive UTC
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """目前 UTC 時間（不含 tzinfo）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """把帶時區的時間轉成 naive UTC"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
