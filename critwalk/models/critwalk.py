# -*- coding: utf-8 -*-
"""
巡檢紀錄模型 - 照片與留言
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from ..clock import utcnow
from ..database import Base


class CritWalk(Base):
    """巡檢紀錄（一次設備巡檢）"""
    __tablename__ = "crit_walks"
    
    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False, index=True)
    equipment_name = Column(String(100), nullable=True)
    technician_name = Column(String(100), nullable=False)
    completed_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    notes = Column(Text, nullable=True)
    
    # 故障（僅主管可修改）
    has_failure = Column(Boolean, nullable=False, default=False)
    work_order_number = Column(String(50), nullable=True)
    failure_resolved_at = Column(DateTime, nullable=True)
    failure_resolved_by = Column(String(100), nullable=True)
    
    photos = relationship(
        "CritWalkPhoto",
        order_by="CritWalkPhoto.position",
        cascade="all, delete-orphan",
    )
    comments = relationship(
        "CritWalkComment",
        order_by="CritWalkComment.id",
        cascade="all, delete-orphan",
    )
    
    def __repr__(self):
        return f"<CritWalk {self.id} equipment={self.equipment_id} @ {self.completed_at}>"
    
    @property
    def is_active_failure(self) -> bool:
        """已標記故障且尚未解除"""
        return bool(self.has_failure) and self.failure_resolved_at is None
    
    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment_name,
            "technician_name": self.technician_name,
            "completed_at": self.completed_at,
            "notes": self.notes,
            "photos": [p.to_dict() for p in self.photos],
            "has_failure": self.has_failure,
            "work_order_number": self.work_order_number,
            "failure_resolved_at": self.failure_resolved_at,
            "failure_resolved_by": self.failure_resolved_by,
            "comments": [c.to_dict() for c in self.comments],
        }


class CritWalkPhoto(Base):
    """巡檢照片（每上傳成功一張就新增一列）"""
    __tablename__ = "crit_walk_photos"
    
    id = Column(Integer, primary_key=True, index=True)
    crit_walk_id = Column(Integer, ForeignKey("crit_walks.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    storage_url = Column(Text, nullable=False)
    uploaded_at = Column(DateTime, default=utcnow)
    
    def to_dict(self) -> dict:
        return {
            "storage_url": self.storage_url,
            "uploaded_at": self.uploaded_at,
        }


class CritWalkComment(Base):
    """巡檢留言（只能新增）"""
    __tablename__ = "crit_walk_comments"
    
    id = Column(Integer, primary_key=True, index=True)
    crit_walk_id = Column(Integer, ForeignKey("crit_walks.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    
    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "created_by": self.created_by,
            "created_at": self.created_at,
        }
