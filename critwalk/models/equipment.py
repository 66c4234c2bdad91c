# -*- coding: utf-8 -*-
"""
設備與設備狀態彙總模型
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship

from ..clock import utcnow
from ..database import Base


class Equipment(Base):
    """設備"""
    __tablename__ = "equipment"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(100), nullable=True)
    category = Column(String(50), nullable=True)
    
    # 巡檢間隔（小時）- 目前狀態計算不使用，固定 8/12 小時
    crit_walk_interval = Column(Integer, default=12)
    expected_photo_count = Column(Integer, default=1)
    photo_guidelines = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    is_active = Column(Boolean, default=True)
    
    status_summary = relationship(
        "EquipmentStatusSummary",
        back_populates="equipment",
        uselist=False,
        cascade="all, delete-orphan",
    )
    
    def __repr__(self):
        return f"<Equipment {self.name} @ {self.location}>"
    
    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "category": self.category,
            "crit_walk_interval": self.crit_walk_interval,
            "expected_photo_count": self.expected_photo_count,
            "photo_guidelines": self.photo_guidelines,
            "tags": self.tags or [],
            "created_by": self.created_by,
            "created_at": self.created_at,
            "is_active": self.is_active,
        }


class EquipmentStatusSummary(Base):
    """
    設備狀態彙總（反正規化）
    
    所有欄位都可以從巡檢紀錄重新計算；status 不儲存，讀取時即時計算。
    """
    __tablename__ = "equipment_status"
    
    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False, unique=True, index=True)
    
    last_crit_walk_at = Column(DateTime, nullable=True)
    last_crit_walk_by = Column(String(100), nullable=True)
    total_walks_completed = Column(Integer, nullable=False, default=0)
    
    # 未解除故障
    has_active_failure = Column(Boolean, nullable=False, default=False)
    active_failure_count = Column(Integer, nullable=False, default=0)
    last_failure_at = Column(DateTime, nullable=True)
    
    equipment = relationship("Equipment", back_populates="status_summary")
    
    def __repr__(self):
        return f"<EquipmentStatusSummary {self.equipment_id} walks={self.total_walks_completed} failures={self.active_failure_count}>"
