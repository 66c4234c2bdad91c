# -*- coding: utf-8 -*-
"""
設備狀態彙總維護

彙總只是巡檢紀錄的快取：
- 新增巡檢、解除故障：以單一 UPDATE 做原子遞增/遞減（不先讀再寫）
- 修改故障資料：重新掃描該設備所有巡檢紀錄，覆寫故障計數（自我修復）
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import StorageIOError
from ..models.critwalk import CritWalk
from ..models.equipment import EquipmentStatusSummary
from .status import classify

logger = logging.getLogger(__name__)

Summary = EquipmentStatusSummary


def new_summary(equipment_id: int) -> EquipmentStatusSummary:
    """歸零的彙總（建立設備時一併建立）"""
    return EquipmentStatusSummary(
        equipment_id=equipment_id,
        last_crit_walk_at=None,
        last_crit_walk_by=None,
        total_walks_completed=0,
        has_active_failure=False,
        active_failure_count=0,
        last_failure_at=None,
    )


def get_summary(db: Session, equipment_id: int) -> Optional[EquipmentStatusSummary]:
    return db.query(Summary).filter(Summary.equipment_id == equipment_id).first()


def summary_view(summary: Optional[EquipmentStatusSummary], equipment_id: int, now: datetime = None) -> Dict:
    """彙總 + 即時計算的狀態燈號"""
    if summary is None:
        summary = new_summary(equipment_id)
    return {
        "equipment_id": equipment_id,
        "last_crit_walk_at": summary.last_crit_walk_at,
        "last_crit_walk_by": summary.last_crit_walk_by,
        "total_walks_completed": summary.total_walks_completed or 0,
        "has_active_failure": bool(summary.has_active_failure),
        "active_failure_count": summary.active_failure_count or 0,
        "last_failure_at": summary.last_failure_at,
        "status": classify(summary.last_crit_walk_at, now).value,
    }


# ======================
# 增量更新（原子）
# ======================

def record_crit_walk(
    db: Session,
    equipment_id: int,
    completed_at: datetime,
    technician_name: str,
    has_failure: bool = False,
) -> None:
    """新增巡檢後更新彙總"""
    newer_walk = or_(Summary.last_crit_walk_at.is_(None), Summary.last_crit_walk_at <= completed_at)
    values = {
        Summary.total_walks_completed: Summary.total_walks_completed + 1,
        Summary.last_crit_walk_at: case((newer_walk, completed_at), else_=Summary.last_crit_walk_at),
        Summary.last_crit_walk_by: case((newer_walk, technician_name), else_=Summary.last_crit_walk_by),
    }
    
    if has_failure:
        newer_failure = or_(Summary.last_failure_at.is_(None), Summary.last_failure_at <= completed_at)
        values[Summary.active_failure_count] = Summary.active_failure_count + 1
        values[Summary.has_active_failure] = True
        values[Summary.last_failure_at] = case((newer_failure, completed_at), else_=Summary.last_failure_at)
    
    updated = db.query(Summary).filter(Summary.equipment_id == equipment_id).update(
        values, synchronize_session=False
    )
    
    if not updated:
        logger.warning("設備 %s 沒有狀態彙總，改為重新計算", equipment_id)
        rebuild_summary(db, equipment_id)


def record_failure_resolved(db: Session, equipment_id: int) -> None:
    """
    解除一筆故障：計數減一（最低為 0）

    has_active_failure 另外用第二個 UPDATE 由遞減後的計數算出，
    不依賴資料庫在同一個 SET 裡讀到的是舊值還是新值（MySQL 會讀新值）。
    """
    query = db.query(Summary).filter(Summary.equipment_id == equipment_id)
    updated = query.update(
        {
            Summary.active_failure_count: case(
                (Summary.active_failure_count > 0, Summary.active_failure_count - 1),
                else_=0,
            ),
        },
        synchronize_session=False,
    )

    if not updated:
        logger.warning("設備 %s 沒有狀態彙總，改為重新計算", equipment_id)
        rebuild_summary(db, equipment_id)
        return

    query.update(
        {Summary.has_active_failure: case((Summary.active_failure_count > 0, True), else_=False)},
        synchronize_session=False,
    )


# ======================
# 全量重算
# ======================

def count_active_failures(db: Session, equipment_id: int) -> int:
    """已標記故障且尚未解除的巡檢數"""
    return db.query(CritWalk).filter(
        CritWalk.equipment_id == equipment_id,
        CritWalk.has_failure == True,
        CritWalk.failure_resolved_at.is_(None),
    ).count()


def reconcile_failures(db: Session, equipment_id: int) -> EquipmentStatusSummary:
    """
    重新掃描巡檢紀錄，覆寫 active_failure_count / has_active_failure / last_failure_at
    
    不論之前的增量更新漂移多少，執行後計數一定與紀錄一致。
    """
    summary = get_summary(db, equipment_id)
    if summary is None:
        return rebuild_summary(db, equipment_id)
    
    active_count = count_active_failures(db, equipment_id)
    last_failure_at = db.query(func.max(CritWalk.completed_at)).filter(
        CritWalk.equipment_id == equipment_id,
        CritWalk.has_failure == True,
    ).scalar()
    
    if summary.active_failure_count != active_count:
        logger.info(
            "設備 %s 故障計數修正：%s -> %s",
            equipment_id, summary.active_failure_count, active_count,
        )
    
    summary.active_failure_count = active_count
    summary.has_active_failure = active_count > 0
    summary.last_failure_at = last_failure_at
    return summary


def rebuild_summary(db: Session, equipment_id: int) -> EquipmentStatusSummary:
    """從巡檢紀錄重建整份彙總（彙總不存在時使用）"""
    summary = get_summary(db, equipment_id)
    if summary is None:
        summary = new_summary(equipment_id)
        db.add(summary)
    
    latest = db.query(CritWalk).filter(
        CritWalk.equipment_id == equipment_id,
    ).order_by(CritWalk.completed_at.desc(), CritWalk.id.desc()).first()
    
    summary.total_walks_completed = db.query(CritWalk).filter(
        CritWalk.equipment_id == equipment_id,
    ).count()
    summary.last_crit_walk_at = latest.completed_at if latest else None
    summary.last_crit_walk_by = latest.technician_name if latest else None
    db.flush()
    
    return reconcile_failures(db, equipment_id)


# ======================
# 失敗處理
# ======================

def apply_aggregate_update(db: Session, update: Callable, *args, **kwargs) -> bool:
    """
    執行彙總更新並 commit
    
    彙總更新失敗不會復原已建立的巡檢紀錄：預設只記錄錯誤並回傳 False，
    STRICT_AGGREGATE_UPDATES=True 時改為拋出 StorageIOError。
    """
    try:
        update(db, *args, **kwargs)
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("設備狀態彙總更新失敗（%s）", getattr(update, "__name__", update))
        if settings.STRICT_AGGREGATE_UPDATES:
            raise StorageIOError(f"設備狀態彙總更新失敗：{e}") from e
        return False
