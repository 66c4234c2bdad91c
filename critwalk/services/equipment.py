# -*- coding: utf-8 -*-
"""
設備服務 - 設備管理與狀態查詢
"""

import logging
from datetime import datetime
from typing import Dict, List

from sqlalchemy.orm import Session

from ..clock import utcnow
from ..database import commit_or_raise
from ..errors import NotFoundError, ValidationError
from ..models.equipment import Equipment, EquipmentStatusSummary
from ..models.user import Actor, ensure_manager
from . import equipment_status

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "description",
    "location",
    "category",
    "crit_walk_interval",
    "expected_photo_count",
    "photo_guidelines",
    "tags",
)


def _validate_fields(fields: Dict) -> None:
    if "name" in fields and not (fields["name"] or "").strip():
        raise ValidationError("設備名稱不可空白")
    interval = fields.get("crit_walk_interval")
    if interval is not None and interval <= 0:
        raise ValidationError("巡檢間隔必須大於 0 小時")
    photo_count = fields.get("expected_photo_count")
    if photo_count is not None and photo_count < 0:
        raise ValidationError("預期照片數不可為負數")


def create_equipment(
    db: Session,
    actor: Actor,
    name: str,
    description: str = None,
    location: str = None,
    category: str = None,
    crit_walk_interval: int = 12,
    expected_photo_count: int = 1,
    photo_guidelines: str = None,
    tags: List[str] = None,
) -> Equipment:
    """建立設備（同時建立歸零的狀態彙總）"""
    ensure_manager(actor, "新增設備")
    _validate_fields({
        "name": name,
        "crit_walk_interval": crit_walk_interval,
        "expected_photo_count": expected_photo_count,
    })
    
    equipment = Equipment(
        name=name.strip(),
        description=description,
        location=location,
        category=category,
        crit_walk_interval=crit_walk_interval,
        expected_photo_count=expected_photo_count,
        photo_guidelines=photo_guidelines,
        tags=tags or [],
        created_by=actor.name,
        created_at=utcnow(),
        is_active=True,
    )
    db.add(equipment)
    db.flush()
    
    db.add(equipment_status.new_summary(equipment.id))
    commit_or_raise(db, "建立設備失敗")
    db.refresh(equipment)
    
    logger.info("新增設備 %s（%s）by %s", equipment.id, equipment.name, actor.name)
    return equipment


def get_all_equipment(db: Session) -> List[Equipment]:
    """取得所有啟用中的設備（新的在前）"""
    return db.query(Equipment).filter(
        Equipment.is_active == True
    ).order_by(Equipment.created_at.desc(), Equipment.id.desc()).all()


def get_equipment_by_id(db: Session, equipment_id: int) -> Equipment:
    """取得設備，不存在時拋出 NotFoundError"""
    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise NotFoundError(f"找不到設備 {equipment_id}")
    return equipment


def update_equipment(db: Session, actor: Actor, equipment_id: int, **fields) -> Equipment:
    """更新設備（只更新有傳入的欄位）"""
    ensure_manager(actor, "修改設備")
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"無法修改的欄位：{', '.join(sorted(unknown))}")
    _validate_fields(fields)
    
    equipment = get_equipment_by_id(db, equipment_id)
    for key, value in fields.items():
        setattr(equipment, key, value.strip() if key == "name" else value)
    
    commit_or_raise(db, "更新設備失敗")
    db.refresh(equipment)
    return equipment


def deactivate_equipment(db: Session, actor: Actor, equipment_id: int) -> Equipment:
    """停用設備（不刪除巡檢紀錄）"""
    ensure_manager(actor, "刪除設備")
    equipment = get_equipment_by_id(db, equipment_id)
    equipment.is_active = False
    commit_or_raise(db, "停用設備失敗")
    
    logger.info("停用設備 %s by %s", equipment_id, actor.name)
    return equipment


def get_equipment_status(db: Session, equipment_id: int, now: datetime = None) -> Dict:
    """取得設備狀態（燈號即時計算）"""
    get_equipment_by_id(db, equipment_id)
    summary = equipment_status.get_summary(db, equipment_id)
    return equipment_status.summary_view(summary, equipment_id, now)


def get_all_equipment_statuses(db: Session, now: datetime = None) -> Dict[int, Dict]:
    """取得所有設備狀態 {equipment_id: status}"""
    if now is None:
        now = utcnow()
    summaries = db.query(EquipmentStatusSummary).all()
    return {
        s.equipment_id: equipment_status.summary_view(s, s.equipment_id, now)
        for s in summaries
    }


def get_equipment_overview(db: Session, now: datetime = None) -> List[Dict]:
    """設備列表 + 狀態（儀表板用）"""
    if now is None:
        now = utcnow()
    statuses = get_all_equipment_statuses(db, now)
    return [
        {
            **e.to_dict(),
            "status": statuses.get(e.id) or equipment_status.summary_view(None, e.id, now),
        }
        for e in get_all_equipment(db)
    ]
