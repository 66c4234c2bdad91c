# -*- coding: utf-8 -*-
"""
保存期限清理 - 刪除超過保存天數的巡檢紀錄與照片

每日排程執行（critwalk-cleanup），單筆刪除失敗只記錄並繼續。
"""

import argparse
import logging
from datetime import datetime, timedelta
from typing import Dict, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..clock import utcnow
from ..config import settings
from ..errors import StorageIOError
from ..models.critwalk import CritWalk
from ..models.equipment import Equipment
from . import equipment_status
from .storage import BlobStore, get_blob_store

logger = logging.getLogger(__name__)


def _delete_photos(blob_store: BlobStore, crit_walk: CritWalk) -> Dict[str, int]:
    deleted = 0
    errors = 0
    for photo in crit_walk.photos:
        path = blob_store.path_from_url(photo.storage_url)
        if not path:
            logger.warning("無法解析照片路徑：%s", photo.storage_url)
            errors += 1
            continue
        try:
            blob_store.delete(path)
            deleted += 1
            logger.info("已刪除照片：%s", path)
        except StorageIOError:
            logger.warning("刪除照片失敗：%s", photo.storage_url, exc_info=True)
            errors += 1
    return {"photos": deleted, "errors": errors}


def cleanup_old_crit_walks(
    db: Session,
    blob_store: BlobStore,
    now: datetime = None,
    retention_days: int = None,
) -> Dict[str, int]:
    """
    刪除 completed_at 早於保存期限的巡檢紀錄
    
    被刪除的紀錄若仍是未解除故障，該設備會重新計算故障數。
    
    Returns:
        {"crit_walks": 刪除筆數, "photos": 刪除照片數, "errors": 失敗次數}
    """
    if now is None:
        now = utcnow()
    if retention_days is None:
        retention_days = settings.RETENTION_DAYS
    cutoff = now - timedelta(days=retention_days)
    
    logger.info("開始清理 %s 之前的巡檢紀錄（保存 %d 天）", cutoff, retention_days)
    
    result = {"crit_walks": 0, "photos": 0, "errors": 0}
    needs_reconcile: Set[int] = set()
    
    equipment_ids = [row.id for row in db.query(Equipment.id).all()]
    
    for equipment_id in equipment_ids:
        old_walks = db.query(CritWalk).filter(
            CritWalk.equipment_id == equipment_id,
            CritWalk.completed_at < cutoff,
        ).all()
        
        for crit_walk in old_walks:
            photo_result = _delete_photos(blob_store, crit_walk)
            result["photos"] += photo_result["photos"]
            result["errors"] += photo_result["errors"]
            
            was_active = crit_walk.is_active_failure
            crit_walk_id = crit_walk.id
            try:
                db.delete(crit_walk)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                logger.warning("刪除巡檢紀錄 %s 失敗", crit_walk_id, exc_info=True)
                result["errors"] += 1
                continue
            
            result["crit_walks"] += 1
            if was_active:
                needs_reconcile.add(equipment_id)
    
    for equipment_id in sorted(needs_reconcile):
        equipment_status.apply_aggregate_update(db, equipment_status.reconcile_failures, equipment_id)
    
    logger.info(
        "清理完成：刪除 %d 筆巡檢紀錄、%d 張照片，%d 個錯誤",
        result["crit_walks"], result["photos"], result["errors"],
    )
    return result


def main(argv=None) -> int:
    """critwalk-cleanup 指令"""
    from ..database import SessionLocal, init_db
    from ..logging_config import setup_logging
    
    parser = argparse.ArgumentParser(description="刪除超過保存期限的巡檢紀錄與照片")
    parser.add_argument("--retention-days", type=int, default=settings.RETENTION_DAYS)
    args = parser.parse_args(argv)
    
    setup_logging()
    init_db()
    
    db = SessionLocal()
    try:
        result = cleanup_old_crit_walks(db, get_blob_store(), retention_days=args.retention_days)
    finally:
        db.close()
    
    return 1 if result["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
