# -*- coding: utf-8 -*-
"""
巡檢指派模型
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
import enum

from ..clock import utcnow
from ..database import Base


class AssignmentStatus(str, enum.Enum):
    """指派狀態"""
    PENDING = "pending"         # 待完成
    COMPLETED = "completed"     # 已完成
    OVERDUE = "overdue"         # 逾期（讀取時計算）


class Assignment(Base):
    """指派技術員巡檢某設備"""
    __tablename__ = "assignments"
    
    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False, index=True)
    equipment_name = Column(String(100), nullable=True)
    technician_name = Column(String(100), nullable=False, index=True)
    assigned_by = Column(String(100), nullable=False)
    assigned_at = Column(DateTime, default=utcnow)
    due_by = Column(DateTime, nullable=True)
    
    status = Column(String(20), default=AssignmentStatus.PENDING.value)
    completed_at = Column(DateTime, nullable=True)
    crit_walk_id = Column(Integer, ForeignKey("crit_walks.id", ondelete="SET NULL"), nullable=True)
    
    def __repr__(self):
        return f"<Assignment {self.equipment_id} -> {self.technician_name} ({self.status})>"
    
    def effective_status(self, now) -> str:
        """待完成且已超過期限者視為逾期"""
        if self.status == AssignmentStatus.PENDING.value and self.due_by and self.due_by < now:
            return AssignmentStatus.OVERDUE.value
        return self.status
    
    def to_dict(self, now=None) -> dict:
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment_name,
            "technician_name": self.technician_name,
            "assigned_by": self.assigned_by,
            "assigned_at": self.assigned_at,
            "due_by": self.due_by,
            "status": self.effective_status(now or utcnow()),
            "completed_at": self.completed_at,
            "crit_walk_id": self.crit_walk_id,
        }
