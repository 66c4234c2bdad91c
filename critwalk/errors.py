# -*- coding: utf-8 -*-
"""
錯誤類型
"""

from typing import List, Optional


class CritWalkError(Exception):
    """所有巡檢系統錯誤的基底類別"""


class NotFoundError(CritWalkError):
    """設備或巡檢紀錄不存在"""


class ValidationError(CritWalkError):
    """違反業務規則（例如標記故障但沒有工單號碼）"""


class PermissionDeniedError(CritWalkError):
    """角色不足（僅限主管的操作）"""


class StorageIOError(CritWalkError):
    """資料庫或照片儲存呼叫失敗"""
    
    retryable = False
    
    def __init__(self, message: str, crit_walk_id: Optional[int] = None):
        super().__init__(message)
        self.crit_walk_id = crit_walk_id


class StorageTimeoutError(StorageIOError):
    """儲存呼叫逾時，可重試"""
    
    retryable = True


class PartialUploadError(StorageIOError):
    """
    多張照片中部分上傳失敗
    
    巡檢紀錄已建立，photos 只包含成功的照片。
    """
    
    def __init__(self, crit_walk_id: int, uploaded: List[str], failed: List[str]):
        super().__init__(
            f"巡檢紀錄 {crit_walk_id} 有 {len(failed)} 張照片上傳失敗",
            crit_walk_id=crit_walk_id,
        )
        self.uploaded = uploaded
        self.failed = failed
