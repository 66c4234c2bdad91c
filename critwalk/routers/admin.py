# -*- coding: utf-8 -*-
"""
管理路由 - 手動執行保存期限清理
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import Actor
from ..services.auth import require_manager
from ..services.storage import BlobStore, get_blob_store
from ..services import cleanup as cleanup_service

router = APIRouter(prefix="/api/admin", tags=["管理"])


@router.post("/cleanup")
async def run_cleanup(
    retention_days: Optional[int] = None,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    current_actor: Actor = Depends(require_manager),
):
    """刪除超過保存期限的巡檢紀錄與照片"""
    return cleanup_service.cleanup_old_crit_walks(db, blob_store, retention_days=retention_days)
