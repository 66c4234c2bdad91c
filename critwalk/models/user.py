# -*- coding: utf-8 -*-
"""
使用者身分 - 不存資料庫，由 session cookie 帶入每個操作
"""

from dataclasses import dataclass
import enum

from ..errors import PermissionDeniedError


class Role(str, enum.Enum):
    """使用者角色"""
    MANAGER = "manager"         # 主管 - 標記/解除故障、管理設備
    TECHNICIAN = "technician"   # 技術員 - 執行巡檢


ROLE_DISPLAY_NAMES = {
    "manager": "主管",
    "technician": "技術員",
}


def get_role_display_name(role: str) -> str:
    """取得角色顯示名稱"""
    return ROLE_DISPLAY_NAMES.get(role, role)


@dataclass(frozen=True)
class Actor:
    """目前操作者（姓名 + 角色），以參數傳入各項服務"""
    name: str
    role: Role = Role.TECHNICIAN
    
    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER
    
    @property
    def role_display_name(self) -> str:
        return get_role_display_name(self.role.value)


def ensure_manager(actor: Actor, action: str) -> None:
    """僅限主管的操作"""
    if not actor.is_manager:
        raise PermissionDeniedError(f"{action}僅限主管（目前角色：{actor.role_display_name}）")
