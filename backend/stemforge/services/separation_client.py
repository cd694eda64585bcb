"""Music.AI 分軌服務客戶端。"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import uuid4

import httpx

from stemforge.services.jobs import HttpJobClient, JobHandle

SEPARATION_SUCCESS = "SUCCEEDED"
SEPARATION_FAILURE = "FAILED"

# result 中非分軌連結的欄位
RESULT_METADATA_KEYS = frozenset({"duration", "sampleRate", "bitDepth"})
STEM_URL_SCHEMES = frozenset({"http", "https"})


def _is_stem_url(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        return httpx.URL(value).scheme in STEM_URL_SCHEMES
    except httpx.InvalidURL:
        return False


@dataclass(frozen=True)
class SeparationResult:
    """分軌作業完成時的結果。"""

    status: str
    stems: Dict[str, str] = field(default_factory=dict)
    duration: Optional[float] = None
    sample_rate: Optional[int] = None
    bit_depth: Optional[int] = None


class SeparationJobClient(HttpJobClient):
    """呼叫 Music.AI job API，以網址提交音訊進行分軌。"""

    name = "musicai"

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str | None,
        workflow: str,
    ) -> None:
        super().__init__(client=client, base_url=base_url, api_key=api_key)
        self.workflow = workflow

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": self._api_key or "",
            "Content-Type": "application/json",
        }

    async def submit(self, source_url: str) -> JobHandle:
        payload = {
            "name": f"Track_{uuid4()}",
            "workflow": self.workflow,
            "params": {"inputUrl": source_url},
        }
        return await self._create("/job", payload, id_field="id")

    async def fetch_status(self, handle: JobHandle) -> Dict[str, Any]:
        return await self._read(f"/job/{handle.job_id}", handle)

    def is_success(self, snapshot: Dict[str, Any]) -> bool:
        return snapshot.get("status") == SEPARATION_SUCCESS

    def is_failure(self, snapshot: Dict[str, Any]) -> bool:
        return snapshot.get("status") == SEPARATION_FAILURE

    @staticmethod
    def parse_result(snapshot: Dict[str, Any]) -> SeparationResult:
        """取出分軌連結與音訊屬性，忽略非連結欄位。"""

        result = snapshot.get("result") or {}
        if not isinstance(result, dict):
            result = {}
        stems = {
            name: value
            for name, value in result.items()
            if name not in RESULT_METADATA_KEYS and _is_stem_url(value)
        }
        return SeparationResult(
            status=str(snapshot.get("status")),
            stems=stems,
            duration=result.get("duration"),
            sample_rate=result.get("sampleRate"),
            bit_depth=result.get("bitDepth"),
        )
