"""系統健康檢查端點。"""
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from stemforge.core.config import settings

# router 專責提供系統層資訊路由
router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health", summary="查詢系統健康狀態")
async def read_health() -> dict[str, Any]:
    """回傳服務狀態與外部服務設定情形，供監控使用。"""

    payload: dict[str, Any] = {
        "status": "ok",
        "service": settings.project_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        # 僅回報是否已設定，不輸出金鑰
        "integrations": {
            "sonauto": bool(settings.sonauto_api_key),
            "musicAi": bool(settings.musicai_api_key),
            "storage": bool(settings.supabase_url and settings.supabase_storage_bucket),
        },
    }
    return payload
