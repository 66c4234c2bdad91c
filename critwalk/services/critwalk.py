# -*- coding: utf-8 -*-
"""
巡檢服務 - 建立巡檢、上傳照片、故障標記與解除、留言

故障生命週期：
    未標記 --標記故障--> 故障中 --解除--> 已解除
    故障中 --取消標記--> 未標記
    已解除 --重新標記--> 故障中（清除解除資料）
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..clock import utcnow, to_naive_utc
from ..config import settings
from ..database import commit_or_raise
from ..errors import (
    CritWalkError, NotFoundError, ValidationError, StorageIOError, PartialUploadError,
)
from ..models.assignment import AssignmentStatus
from ..models.critwalk import CritWalk, CritWalkPhoto, CritWalkComment
from ..models.user import Actor, ensure_manager
from . import equipment_status
from . import assignment as assignment_service
from .equipment import get_equipment_by_id
from .storage import BlobStore, photo_filename, photo_path

logger = logging.getLogger(__name__)


def _validate_failure(has_failure: bool, work_order_number: Optional[str]) -> None:
    """標記故障必須填工單號碼"""
    if has_failure and not (work_order_number or "").strip():
        raise ValidationError("標記故障時必須填寫工單號碼")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ======================
# 建立巡檢
# ======================

def create_crit_walk(
    db: Session,
    blob_store: BlobStore,
    equipment_id: int,
    actor: Actor,
    notes: str = None,
    has_failure: bool = False,
    work_order_number: str = None,
    photos: Sequence[bytes] = (),
    assignment_id: int = None,
    now: datetime = None,
) -> int:
    """
    建立巡檢紀錄
    
    1. 先建立不含照片的紀錄，取得 ID
    2. 各張照片獨立上傳，成功的逐一加入 photos
    3. 更新設備狀態彙總
    
    Returns:
        巡檢紀錄 ID
    
    Raises:
        PartialUploadError: 部分照片上傳失敗（紀錄已建立）
        StorageIOError: 全部照片上傳失敗（紀錄已建立，crit_walk_id 有值）
    """
    if not (actor.name or "").strip():
        raise ValidationError("技術員姓名不可空白")
    _validate_failure(has_failure, work_order_number)
    
    equipment = get_equipment_by_id(db, equipment_id)
    if assignment_id is not None:
        assignment = assignment_service.get_assignment(db, assignment_id)
        if assignment.equipment_id != equipment.id:
            raise ValidationError(f"指派 {assignment_id} 不是設備 {equipment_id} 的指派")
        if assignment.status == AssignmentStatus.COMPLETED.value:
            raise ValidationError(f"指派 {assignment_id} 已完成")

    crit_walk = CritWalk(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        technician_name=actor.name.strip(),
        completed_at=to_naive_utc(now) if now else utcnow(),
        notes=notes or "",
        has_failure=bool(has_failure),
        work_order_number=_clean(work_order_number),
    )
    db.add(crit_walk)
    commit_or_raise(db, "建立巡檢紀錄失敗")
    db.refresh(crit_walk)
    
    crit_walk_id = crit_walk.id
    completed_at = crit_walk.completed_at
    logger.info("設備 %s 新增巡檢 %s by %s", equipment_id, crit_walk_id, crit_walk.technician_name)
    
    uploaded, failed = upload_photos(db, blob_store, crit_walk, photos)
    
    equipment_status.apply_aggregate_update(
        db,
        equipment_status.record_crit_walk,
        equipment_id,
        completed_at,
        actor.name.strip(),
        has_failure=bool(has_failure),
    )
    
    if assignment_id is not None:
        try:
            assignment_service.complete_assignment(db, assignment_id, crit_walk_id, now=completed_at)
        except CritWalkError:
            # 紀錄已建立，指派無法完成不影響回傳的巡檢 ID
            logger.warning(
                "巡檢 %s 無法完成指派 %s", crit_walk_id, assignment_id, exc_info=True,
            )

    if failed:
        if uploaded:
            raise PartialUploadError(crit_walk_id, uploaded, failed)
        raise StorageIOError(f"巡檢紀錄 {crit_walk_id} 的照片全部上傳失敗", crit_walk_id=crit_walk_id)
    
    return crit_walk_id


def upload_photos(
    db: Session,
    blob_store: BlobStore,
    crit_walk: CritWalk,
    photos: Sequence[bytes],
) -> Tuple[List[str], List[str]]:
    """
    平行上傳照片，每張成功就新增一筆照片資料
    
    單張失敗不影響其他照片與巡檢紀錄本身。
    
    Returns:
        (成功的網址, 失敗的檔名)
    """
    uploaded: List[str] = []
    failed: List[str] = []
    saved: List[str] = []
    if not photos:
        return uploaded, failed
    
    crit_walk_id = crit_walk.id
    
    timestamp_ms = int(time.time() * 1000)
    workers = max(1, min(settings.PHOTO_UPLOAD_WORKERS, len(photos)))
    
    with ThreadPoolExecutor(max_workers=workers) as executor:
        jobs = {}
        for index, data in enumerate(photos):
            filename = photo_filename(index, timestamp_ms)
            path = photo_path(crit_walk.equipment_id, crit_walk_id, filename)
            jobs[executor.submit(blob_store.put, path, data)] = (index, filename)
        
        for future in as_completed(jobs):
            index, filename = jobs[future]
            try:
                url = future.result()
            except Exception:
                logger.warning("巡檢 %s 照片 %s 上傳失敗", crit_walk_id, filename, exc_info=True)
                failed.append(filename)
                continue
            
            db.add(CritWalkPhoto(
                crit_walk_id=crit_walk_id,
                position=index,
                storage_url=url,
                uploaded_at=utcnow(),
            ))
            uploaded.append(url)
            saved.append(filename)

    if uploaded:
        try:
            commit_or_raise(db, f"儲存巡檢 {crit_walk_id} 的照片失敗")
        except StorageIOError:
            # 檔案已上傳但照片資料沒存進去，視為上傳失敗
            logger.exception("巡檢 %s 照片資料寫入失敗，%s 張照片視為失敗", crit_walk_id, len(saved))
            failed.extend(saved)
            uploaded = []

    return uploaded, failed


# ======================
# 查詢
# ======================

def get_crit_walk(db: Session, equipment_id: int, crit_walk_id: int) -> CritWalk:
    """取得巡檢紀錄，不存在時拋出 NotFoundError"""
    crit_walk = db.query(CritWalk).filter(
        CritWalk.id == crit_walk_id,
        CritWalk.equipment_id == equipment_id,
    ).first()
    if not crit_walk:
        raise NotFoundError(f"找不到設備 {equipment_id} 的巡檢紀錄 {crit_walk_id}")
    return crit_walk


def get_crit_walks_by_equipment(db: Session, equipment_id: int, limit: int = None) -> List[CritWalk]:
    """取得設備巡檢歷史（新的在前）"""
    if limit is None:
        limit = settings.HISTORY_LIMIT
    return db.query(CritWalk).filter(
        CritWalk.equipment_id == equipment_id,
    ).order_by(CritWalk.completed_at.desc(), CritWalk.id.desc()).limit(limit).all()


def get_active_failures(db: Session, equipment_id: int = None) -> List[CritWalk]:
    """取得未解除的故障"""
    query = db.query(CritWalk).filter(
        CritWalk.has_failure == True,
        CritWalk.failure_resolved_at.is_(None),
    )
    if equipment_id is not None:
        query = query.filter(CritWalk.equipment_id == equipment_id)
    return query.order_by(CritWalk.completed_at.desc()).all()


# ======================
# 故障處理（主管）
# ======================

def resolve_failure(
    db: Session,
    equipment_id: int,
    crit_walk_id: int,
    actor: Actor,
    now: datetime = None,
) -> CritWalk:
    """
    解除故障
    
    只有「故障中」的紀錄可以解除；已解除或未標記故障的紀錄會拋出 ValidationError，
    不會覆寫原本的解除人與時間。
    """
    ensure_manager(actor, "解除故障")
    crit_walk = get_crit_walk(db, equipment_id, crit_walk_id)
    
    if not crit_walk.has_failure:
        raise ValidationError(f"巡檢紀錄 {crit_walk_id} 沒有標記故障")
    if crit_walk.failure_resolved_at is not None:
        raise ValidationError(
            f"巡檢紀錄 {crit_walk_id} 的故障已於 {crit_walk.failure_resolved_at:%Y-%m-%d %H:%M} "
            f"由 {crit_walk.failure_resolved_by} 解除"
        )
    
    crit_walk.failure_resolved_at = to_naive_utc(now) if now else utcnow()
    crit_walk.failure_resolved_by = actor.name
    commit_or_raise(db, "解除故障失敗")
    
    logger.info("設備 %s 巡檢 %s 故障已解除 by %s", equipment_id, crit_walk_id, actor.name)
    
    equipment_status.apply_aggregate_update(db, equipment_status.record_failure_resolved, equipment_id)
    
    db.refresh(crit_walk)
    return crit_walk


def edit_failure_details(
    db: Session,
    equipment_id: int,
    crit_walk_id: int,
    actor: Actor,
    has_failure: bool,
    work_order_number: str = None,
) -> CritWalk:
    """
    修改故障標記與工單號碼，然後重新計算設備故障數
    
    取消標記時清除解除資料；已解除的紀錄重新標記故障時也會清除解除資料（重新開啟）。
    """
    ensure_manager(actor, "修改故障資料")
    _validate_failure(has_failure, work_order_number)
    crit_walk = get_crit_walk(db, equipment_id, crit_walk_id)
    
    if crit_walk.failure_resolved_at is not None:
        if has_failure:
            logger.info("設備 %s 巡檢 %s 故障重新開啟 by %s", equipment_id, crit_walk_id, actor.name)
        crit_walk.failure_resolved_at = None
        crit_walk.failure_resolved_by = None
    
    crit_walk.has_failure = bool(has_failure)
    crit_walk.work_order_number = _clean(work_order_number)
    commit_or_raise(db, "修改故障資料失敗")
    
    equipment_status.apply_aggregate_update(db, equipment_status.reconcile_failures, equipment_id)
    
    db.refresh(crit_walk)
    return crit_walk


def reconcile_failures(db: Session, equipment_id: int) -> dict:
    """手動重新計算設備故障數"""
    get_equipment_by_id(db, equipment_id)
    equipment_status.reconcile_failures(db, equipment_id)
    commit_or_raise(db, "重新計算故障數失敗")
    return equipment_status.summary_view(
        equipment_status.get_summary(db, equipment_id), equipment_id
    )


# ======================
# 留言
# ======================

def add_comment(
    db: Session,
    equipment_id: int,
    crit_walk_id: int,
    actor: Actor,
    text: str,
    now: datetime = None,
) -> CritWalkComment:
    """新增留言（不影響設備狀態）"""
    if not (text or "").strip():
        raise ValidationError("留言內容不可空白")
    get_crit_walk(db, equipment_id, crit_walk_id)
    
    comment = CritWalkComment(
        crit_walk_id=crit_walk_id,
        text=text.strip(),
        created_by=actor.name,
        created_at=to_naive_utc(now) if now else utcnow(),
    )
    db.add(comment)
    commit_or_raise(db, "新增留言失敗")
    db.refresh(comment)
    return comment
