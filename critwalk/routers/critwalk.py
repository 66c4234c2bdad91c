# -*- coding: utf-8 -*-
"""
巡檢路由 - 建立巡檢、歷史、故障處理、留言
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import Actor
from ..services.auth import require_login, require_manager
from ..services.storage import BlobStore, get_blob_store
from ..services import critwalk as critwalk_service
from ..services import equipment as equipment_service

router = APIRouter(prefix="/api", tags=["巡檢"])


class FailureDetailsIn(BaseModel):
    has_failure: bool
    work_order_number: Optional[str] = None


class CommentIn(BaseModel):
    text: str


@router.get("/equipment/{equipment_id}/critwalks")
async def list_crit_walks(
    equipment_id: int,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """巡檢歷史（新的在前）"""
    equipment_service.get_equipment_by_id(db, equipment_id)
    crit_walks = critwalk_service.get_crit_walks_by_equipment(db, equipment_id, limit)
    return [cw.to_dict() for cw in crit_walks]


@router.post("/equipment/{equipment_id}/critwalks", status_code=201)
async def create_crit_walk(
    equipment_id: int,
    notes: str = Form(None),
    has_failure: bool = Form(False),
    work_order_number: str = Form(None),
    assignment_id: int = Form(None),
    photos: List[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    current_actor: Actor = Depends(require_login),
):
    """完成巡檢（multipart，photos 可多張）"""
    photo_data = [await photo.read() for photo in photos]
    
    crit_walk_id = critwalk_service.create_crit_walk(
        db=db,
        blob_store=blob_store,
        equipment_id=equipment_id,
        actor=current_actor,
        notes=notes,
        has_failure=has_failure,
        work_order_number=work_order_number,
        photos=photo_data,
        assignment_id=assignment_id,
    )
    return {"id": crit_walk_id}


@router.get("/equipment/{equipment_id}/critwalks/{crit_walk_id}")
async def get_crit_walk(
    equipment_id: int,
    crit_walk_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """巡檢紀錄"""
    return critwalk_service.get_crit_walk(db, equipment_id, crit_walk_id).to_dict()


@router.post("/equipment/{equipment_id}/critwalks/{crit_walk_id}/resolve")
async def resolve_failure(
    equipment_id: int,
    crit_walk_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """解除故障"""
    crit_walk = critwalk_service.resolve_failure(db, equipment_id, crit_walk_id, current_actor)
    return crit_walk.to_dict()


@router.patch("/equipment/{equipment_id}/critwalks/{crit_walk_id}/failure")
async def edit_failure_details(
    equipment_id: int,
    crit_walk_id: int,
    data: FailureDetailsIn,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """修改故障標記與工單號碼"""
    crit_walk = critwalk_service.edit_failure_details(
        db,
        equipment_id,
        crit_walk_id,
        current_actor,
        has_failure=data.has_failure,
        work_order_number=data.work_order_number,
    )
    return crit_walk.to_dict()


@router.post("/equipment/{equipment_id}/critwalks/{crit_walk_id}/comments", status_code=201)
async def add_comment(
    equipment_id: int,
    crit_walk_id: int,
    data: CommentIn,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """新增留言"""
    comment = critwalk_service.add_comment(db, equipment_id, crit_walk_id, current_actor, data.text)
    return comment.to_dict()


@router.post("/equipment/{equipment_id}/reconcile")
async def reconcile_failures(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """重新計算設備故障數"""
    return critwalk_service.reconcile_failures(db, equipment_id)


@router.get("/failures")
async def list_active_failures(
    equipment_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """未解除的故障"""
    return [cw.to_dict() for cw in critwalk_service.get_active_failures(db, equipment_id)]
