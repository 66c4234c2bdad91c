# -*- coding: utf-8 -*-
"""
指派路由
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import Actor
from ..services.auth import require_login, require_manager
from ..services import assignment as assignment_service

router = APIRouter(prefix="/api/assignments", tags=["指派"])


class AssignmentIn(BaseModel):
    equipment_id: int
    technician_name: str
    due_by: Optional[datetime] = None


class CompleteIn(BaseModel):
    crit_walk_id: int


@router.get("")
async def list_assignments(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """所有指派"""
    return [a.to_dict() for a in assignment_service.get_all_assignments(db)]


@router.get("/mine")
async def my_assignments(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """我的待完成指派"""
    assignments = assignment_service.get_assignments_by_technician(db, current_actor.name)
    return [a.to_dict() for a in assignments]


@router.post("", status_code=201)
async def create_assignment(
    data: AssignmentIn,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_manager),
):
    """指派巡檢"""
    assignment = assignment_service.create_assignment(
        db,
        current_actor,
        equipment_id=data.equipment_id,
        technician_name=data.technician_name,
        due_by=data.due_by,
    )
    return assignment.to_dict()


@router.post("/{assignment_id}/complete")
async def complete_assignment(
    assignment_id: int,
    data: CompleteIn,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_login),
):
    """以巡檢紀錄完成指派"""
    assignment = assignment_service.complete_assignment(db, assignment_id, data.crit_walk_id)
    return assignment.to_dict()
