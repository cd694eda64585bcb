"""Supabase 儲存相關服務。"""
from __future__ import annotations

import json
import os
import re
import time
from typing import Any, Iterable, List

from fastapi import HTTPException, status
from supabase import Client

from stemforge.core.config import settings
from stemforge.core.supabase import get_supabase_client
from stemforge.services.errors import PersistenceError

JSON_CONTENT_TYPE = "application/json"
AUDIO_CONTENT_TYPE = "audio/mpeg"


class UploadValidationError(Exception):
    """上傳參數驗證錯誤。"""

    def __init__(self, *, status_code: int, error_code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


class StorageService:
    """封裝與 Supabase Storage 的互動，以路徑存放位元組或 JSON。"""

    def __init__(self, *, client: Client, bucket: str, max_bytes: int) -> None:
        self._client = client
        self._bucket = bucket
        self._max_bytes = max_bytes

    def save_bytes(self, path: str, data: bytes, *, content_type: str = AUDIO_CONTENT_TYPE) -> str:
        """寫入位元組資料並回傳可讀取的網址。"""

        storage = self._client.storage.from_(self._bucket)
        try:
            storage.upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as exc:  # noqa: B902 - 轉換外部例外為流程錯誤
            raise PersistenceError(f"無法寫入儲存物件 {path}", path=path) from exc
        return self.public_url(path)

    def save_json(self, path: str, payload: Any) -> str:
        """將資料序列化為 JSON 後寫入。"""

        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return self.save_bytes(path, data, content_type=JSON_CONTENT_TYPE)

    def public_url(self, path: str) -> str:
        """取得物件的公開網址。"""

        return self._client.storage.from_(self._bucket).get_public_url(path)

    def remove(self, paths: Iterable[str]) -> None:
        """刪除指定物件。"""

        targets: List[str] = list(paths)
        if not targets:
            return
        try:
            self._client.storage.from_(self._bucket).remove(targets)
        except Exception as exc:  # noqa: B902 - 轉換外部例外為流程錯誤
            raise PersistenceError("無法刪除儲存物件") from exc

    def build_upload_path(self, *, file_name: str, mime_type: str, file_size: int) -> str:
        """驗證上傳檔案並產生 uploads/ 下的物件路徑。"""

        safe_name = self._sanitize_file_name(file_name)
        self._validate_mime_type(mime_type)
        self._validate_file_size(file_size)
        return f"uploads/{_timestamp_ms()}_{safe_name}"

    def build_stem_path(self, stem_name: str) -> str:
        """產生分軌物件路徑，分軌名稱只保留安全字元。"""

        safe_stem = re.sub(r"[^A-Za-z0-9_-]", "-", stem_name.strip())[:64] or "stem"
        return f"stems/{_timestamp_ms()}_{safe_stem}.mp3"

    def _sanitize_file_name(self, file_name: str) -> str:
        """移除危險字元並保留檔名。"""

        name = file_name.strip()
        name = os.path.basename(name)
        name = re.sub(r"\s+", "_", name)
        name = re.sub(r"[^A-Za-z0-9._-]", "-", name)
        name = name[:128]
        if not name or name.startswith('.') or '..' in name:
            raise UploadValidationError(
                status_code=status.HTTP_400_BAD_REQUEST,
                error_code="INVALID_FILE_NAME",
                message="檔名格式不合法",
            )
        return name

    def _validate_mime_type(self, mime_type: str) -> None:
        """檢查 MIME 類型是否為音訊。"""

        if not mime_type.lower().startswith("audio/"):
            raise UploadValidationError(
                status_code=status.HTTP_400_BAD_REQUEST,
                error_code="UNSUPPORTED_MEDIA_TYPE",
                message="僅支援音訊格式上傳",
            )

    def _validate_file_size(self, file_size: int) -> None:
        """確認檔案大小未超過限制。"""

        if file_size <= 0:
            raise UploadValidationError(
                status_code=status.HTTP_400_BAD_REQUEST,
                error_code="INVALID_FILE_SIZE",
                message="檔案大小需大於 0",
            )
        if file_size > self._max_bytes:
            raise UploadValidationError(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                error_code="UPLOAD_LIMIT_EXCEEDED",
                message="檔案大小超過限制",
            )


_storage_service: StorageService | None = None

def get_storage_service() -> StorageService:
    """提供 FastAPI 依賴注入的 StorageService。"""

    global _storage_service
    if _storage_service is None:
        if not settings.supabase_storage_bucket or not settings.supabase_url:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": {"code": "STORAGE_CONFIGURATION_ERROR", "message": "尚未設定 Supabase Storage 參數"}},
            )
        _storage_service = StorageService(
            client=get_supabase_client(),
            bucket=settings.supabase_storage_bucket,
            max_bytes=settings.upload_max_bytes,
        )
    return _storage_service
