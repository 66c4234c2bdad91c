# -*- coding: utf-8 -*-
"""
資料模型
"""

from .user import Role, Actor
from .equipment import Equipment, EquipmentStatusSummary
from .critwalk import CritWalk, CritWalkPhoto, CritWalkComment
from .assignment import Assignment, AssignmentStatus
