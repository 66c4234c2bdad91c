# -*- coding: utf-8 -*-
"""
照片儲存服務 - 本機資料夾或 HTTP 物件儲存
"""

import logging
import re
import time
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

import httpx

from ..config import settings
from ..errors import StorageIOError, StorageTimeoutError

logger = logging.getLogger(__name__)


def photo_path(equipment_id: int, crit_walk_id: int, filename: str) -> str:
    """照片儲存路徑"""
    return f"equipment/{equipment_id}/critwalks/{crit_walk_id}/{filename}"


def photo_filename(index: int, timestamp_ms: int = None) -> str:
    """照片檔名：{毫秒時間戳}_{序號}.jpg"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}_{index}.jpg"


class BlobStore:
    """照片儲存介面"""
    
    def put(self, path: str, data: bytes) -> str:
        """存入檔案，回傳公開網址"""
        raise NotImplementedError
    
    def delete(self, path: str) -> None:
        raise NotImplementedError
    
    def path_from_url(self, url: str) -> Optional[str]:
        """從公開網址取回儲存路徑；無法解析回傳 None"""
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """存在本機資料夾，由靜態檔案路由提供"""
    
    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
    
    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageIOError(f"不合法的儲存路徑：{path}")
        return target
    
    def put(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageIOError(f"寫入照片失敗：{path}（{e}）") from e
        return f"{self.base_url}/{path}"
    
    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.info("照片已不存在：%s", path)
        except OSError as e:
            raise StorageIOError(f"刪除照片失敗：{path}（{e}）") from e
    
    def path_from_url(self, url: str) -> Optional[str]:
        prefix = self.base_url + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):] or None


class HttpBlobStore(BlobStore):
    """
    HTTP 物件儲存
    
    網址格式：{endpoint}/o/{url-encoded path}?alt=media
    逾時視為可重試，最多重試 max_retries 次。
    """
    
    URL_PATH_PATTERN = re.compile(r"/o/(.+?)(?:\?|$)")
    
    def __init__(
        self,
        endpoint: str,
        token: str = "",
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.BaseTransport = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.transport = transport
    
    def _object_url(self, path: str) -> str:
        return f"{self.endpoint}/o/{quote(path, safe='')}"
    
    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
    
    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = self._object_url(path)
        attempts = self.max_retries + 1
        
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, attempts + 1):
                try:
                    return client.request(method, url, headers=self._headers(), **kwargs)
                except httpx.TimeoutException:
                    logger.warning("儲存呼叫逾時 %s %s（第 %d/%d 次）", method, path, attempt, attempts)
                except httpx.HTTPError as e:
                    raise StorageIOError(f"儲存呼叫失敗 {method} {path}：{e}") from e
        
        raise StorageTimeoutError(f"儲存呼叫逾時 {method} {path}")
    
    def put(self, path: str, data: bytes) -> str:
        response = self._request("PUT", path, content=data, params={"contentType": "image/jpeg"})
        if response.status_code >= 400:
            raise StorageIOError(f"上傳照片失敗 {path}：HTTP {response.status_code}")
        return f"{self._object_url(path)}?alt=media"
    
    def delete(self, path: str) -> None:
        response = self._request("DELETE", path)
        if response.status_code == 404:
            logger.info("照片已不存在：%s", path)
            return
        if response.status_code >= 400:
            raise StorageIOError(f"刪除照片失敗 {path}：HTTP {response.status_code}")
    
    def path_from_url(self, url: str) -> Optional[str]:
        match = self.URL_PATH_PATTERN.search(url or "")
        if not match:
            return None
        return unquote(match.group(1))


def get_blob_store() -> BlobStore:
    """依設定建立照片儲存（FastAPI dependency）"""
    if settings.BLOB_BACKEND == "http":
        return HttpBlobStore(
            endpoint=settings.BLOB_HTTP_ENDPOINT,
            token=settings.BLOB_HTTP_TOKEN,
            timeout=settings.STORAGE_TIMEOUT_SECONDS,
            max_retries=settings.STORAGE_MAX_RETRIES,
        )
    return LocalBlobStore(settings.BLOB_LOCAL_DIR, settings.BLOB_PUBLIC_BASE_URL)
