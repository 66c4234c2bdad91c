# -*- coding: utf-8 -*-
"""
設備巡檢追蹤系統 - FastAPI 入口
"""

import logging
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .config import settings
from .database import init_db
from .errors import (
    CritWalkError,
    NotFoundError,
    ValidationError,
    PermissionDeniedError,
    StorageIOError,
    StorageTimeoutError,
    PartialUploadError,
)
from .logging_config import setup_logging
from .routers import auth, equipment, critwalk, assignments, admin

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """應用程式生命週期"""
    setup_logging()
    logger.info("%s %s 啟動中...", settings.APP_NAME, settings.APP_VERSION)
    init_db()
    yield
    logger.info("應用程式關閉")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)


ERROR_STATUS_CODES = [
    (NotFoundError, 404),
    (ValidationError, 422),
    (PermissionDeniedError, 403),
    (StorageTimeoutError, 503),
    (StorageIOError, 502),
]


@app.exception_handler(PartialUploadError)
async def partial_upload_handler(request: Request, exc: PartialUploadError):
    logger.warning("部分照片上傳失敗：%s", exc)
    return JSONResponse(status_code=207, content={
        "id": exc.crit_walk_id,
        "detail": str(exc),
        "uploaded": exc.uploaded,
        "failed": exc.failed,
    })


@app.exception_handler(CritWalkError)
async def critwalk_error_handler(request: Request, exc: CritWalkError):
    status_code = 500
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    
    content = {"detail": str(exc)}
    if isinstance(exc, StorageIOError):
        content["retryable"] = exc.retryable
        if exc.crit_walk_id is not None:
            content["id"] = exc.crit_walk_id
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("未預期錯誤：%s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


photo_dir = Path(settings.BLOB_LOCAL_DIR)
if settings.BLOB_BACKEND == "local" and photo_dir.exists():
    app.mount("/photos", StaticFiles(directory=str(photo_dir)), name="photos")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


app.include_router(auth.router)
app.include_router(equipment.router)
app.include_router(critwalk.router)
app.include_router(assignments.router)
app.include_router(admin.router)
