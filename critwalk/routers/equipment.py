# -*- coding: utf-8 -*-
"""
設備路由 - 設備管理與狀態
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import Actor
from ..services.auth import require_login, require_manager
from ..services import equipment as equipment_service

router = APIRouter(prefix="/api/equipment", tags=["設備"])


class EquipmentIn(BaseModel):
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    crit_walk_interval: int = 12
    expected_photo_count: int = 1
    photo_guidelines: Optional[str] = None
    tags: List[str] = []


class EquipmentPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    crit_walk_interval: Optional[int] = None
    expected_photo_count: Optional[int] = None
    photo_guidelines: Optional[str] = None
    tags: Optional[List[str]] = None


@router.get("")
async def list_equipment(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """設備列表（含即時狀態）"""
    return equipment_service.get_equipment_overview(db)


@router.post("", status_code=201)
async def create_equipment(
    data: EquipmentIn,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """新增設備"""
    equipment = equipment_service.create_equipment(db, current_actor, **data.model_dump())
    return equipment.to_dict()


@router.get("/{equipment_id}")
async def get_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """設備詳細資料"""
    equipment = equipment_service.get_equipment_by_id(db, equipment_id)
    return {
        **equipment.to_dict(),
        "status": equipment_service.get_equipment_status(db, equipment_id),
    }


@router.patch("/{equipment_id}")
async def update_equipment(
    equipment_id: int,
    data: EquipmentPatch,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """修改設備"""
    fields = data.model_dump(exclude_unset=True)
    equipment = equipment_service.update_equipment(db, current_actor, equipment_id, **fields)
    return equipment.to_dict()


@router.delete("/{equipment_id}")
async def delete_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """停用設備"""
    equipment_service.deactivate_equipment(db, current_actor, equipment_id)
    return {"success": True}


@router.get("/{equipment_id}/status")
async def get_equipment_status(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """設備狀態（燈號即時計算）"""
    return equipment_service.get_equipment_status(db, equipment_id)
