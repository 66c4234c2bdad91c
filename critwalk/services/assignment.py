# -*- coding: utf-8 -*-
"""
指派服務 - 主管指派技術員巡檢設備
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from ..clock import utcnow, to_naive_utc
from ..database import commit_or_raise
from ..errors import NotFoundError, ValidationError
from ..models.assignment import Assignment, AssignmentStatus
from ..models.user import Actor, ensure_manager
from .equipment import get_equipment_by_id

logger = logging.getLogger(__name__)


def create_assignment(
    db: Session,
    actor: Actor,
    equipment_id: int,
    technician_name: str,
    due_by: datetime = None,
) -> Assignment:
    """建立指派"""
    ensure_manager(actor, "指派巡檢")
    if not (technician_name or "").strip():
        raise ValidationError("技術員姓名不可空白")
    
    equipment = get_equipment_by_id(db, equipment_id)
    assignment = Assignment(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        technician_name=technician_name.strip(),
        assigned_by=actor.name,
        assigned_at=utcnow(),
        due_by=to_naive_utc(due_by) if due_by else None,
        status=AssignmentStatus.PENDING.value,
    )
    db.add(assignment)
    commit_or_raise(db, "建立指派失敗")
    db.refresh(assignment)
    
    logger.info("設備 %s 指派給 %s by %s", equipment_id, assignment.technician_name, actor.name)
    return assignment


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFoundError(f"找不到指派 {assignment_id}")
    return assignment


def get_assignments_by_technician(db: Session, technician_name: str) -> List[Assignment]:
    """取得技術員待完成的指派"""
    return db.query(Assignment).filter(
        Assignment.technician_name == technician_name,
        Assignment.status == AssignmentStatus.PENDING.value,
    ).order_by(Assignment.assigned_at.desc(), Assignment.id.desc()).all()


def get_all_assignments(db: Session) -> List[Assignment]:
    return db.query(Assignment).order_by(Assignment.assigned_at.desc(), Assignment.id.desc()).all()


def complete_assignment(
    db: Session,
    assignment_id: int,
    crit_walk_id: int,
    now: datetime = None,
) -> Assignment:
    """以巡檢紀錄完成指派"""
    assignment = get_assignment(db, assignment_id)
    if assignment.status == AssignmentStatus.COMPLETED.value:
        raise ValidationError(f"指派 {assignment_id} 已完成")
    
    assignment.status = AssignmentStatus.COMPLETED.value
    assignment.completed_at = now or utcnow()
    assignment.crit_walk_id = crit_walk_id
    commit_or_raise(db, "完成指派失敗")
    db.refresh(assignment)
    return assignment
