# -*- coding: utf-8 -*-
"""
設定檔 - 環境變數
"""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """應用程式設定"""
    
    # 應用程式
    APP_NAME: str = "設備巡檢追蹤系統"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    
    # 資料庫
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./critwalk.db")
    
    # Session / JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
    SESSION_EXPIRATION_HOURS: int = 12
    
    # 照片儲存（local 或 http）
    BLOB_BACKEND: str = "local"
    BLOB_LOCAL_DIR: str = "./photos"
    BLOB_PUBLIC_BASE_URL: str = "http://localhost:8000/photos"
    BLOB_HTTP_ENDPOINT: str = ""
    BLOB_HTTP_TOKEN: str = ""
    
    # 儲存呼叫逾時與重試
    STORAGE_TIMEOUT_SECONDS: float = 10.0
    STORAGE_MAX_RETRIES: int = 2
    PHOTO_UPLOAD_WORKERS: int = 4
    
    # 設備狀態彙總更新失敗時是否中斷操作（預設只記錄）
    STRICT_AGGREGATE_UPDATES: bool = False
    
    # 巡檢紀錄保存天數
    RETENTION_DAYS: int = 30
    HISTORY_LIMIT: int = 50
    
    # 日誌
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""
    LOG_RETENTION_DAYS: int = 7
    CONSOLE_LOGGING: bool = True
    
    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
