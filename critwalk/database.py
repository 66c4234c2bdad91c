# -*- coding: utf-8 -*-
"""
資料庫連線與初始化
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings
from .errors import StorageIOError

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """取得資料庫 session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """初始化資料庫"""
    # 導入所有 models 以便建立表格
    from .models import equipment, critwalk, assignment
    
    # 建立表格（如果不存在）
    Base.metadata.create_all(bind=engine)
    
    logger.info("資料庫初始化完成")


def commit_or_raise(db, message: str) -> None:
    """commit；資料庫錯誤時 rollback 並轉成 StorageIOError"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageIOError(f"{message}：{e}") from e
