# -*- coding: utf-8 -*-
"""
設備狀態計算 - 依上次巡檢經過時間分為綠/黃/紅/從未巡檢

每次讀取都要重新計算，不使用資料庫裡的舊值。
"""

from datetime import datetime
from typing import Optional
import enum

from ..clock import utcnow, to_naive_utc


class StatusColor(str, enum.Enum):
    """狀態燈號"""
    GREEN = "green"     # 8 小時內
    YELLOW = "yellow"   # 8 ~ 12 小時
    RED = "red"         # 超過 12 小時
    NEVER = "never"     # 從未巡檢


# 固定門檻（小時），不依設備的 crit_walk_interval
GREEN_MAX_HOURS = 8
YELLOW_MAX_HOURS = 12


def hours_since(timestamp: Optional[datetime], now: datetime = None) -> float:
    """距離 timestamp 經過的小時數；沒有時間回傳 inf"""
    if timestamp is None:
        return float("inf")
    if now is None:
        now = utcnow()
    delta = to_naive_utc(now) - to_naive_utc(timestamp)
    return delta.total_seconds() / 3600


def classify(last_crit_walk_at: Optional[datetime], now: datetime = None) -> StatusColor:
    """
    計算設備狀態
    
    Args:
        last_crit_walk_at: 上次巡檢時間（None 表示從未巡檢）
        now: 目前時間，預設為現在（UTC）
    
    Returns:
        StatusColor（邊界值含在較新的一級：剛好 8 小時為綠、剛好 12 小時為黃）
    """
    if last_crit_walk_at is None:
        return StatusColor.NEVER
    
    elapsed = hours_since(last_crit_walk_at, now)
    
    if elapsed <= GREEN_MAX_HOURS:
        return StatusColor.GREEN
    if elapsed <= YELLOW_MAX_HOURS:
        return StatusColor.YELLOW
    return StatusColor.RED
