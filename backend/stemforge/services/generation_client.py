"""Sonauto 音軌生成服務客戶端。"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from stemforge.services.jobs import HttpJobClient, JobHandle

GENERATION_SUCCESS = "SUCCESS"
GENERATION_FAILURE = "FAILURE"


@dataclass(frozen=True)
class GenerationResult:
    """生成作業完成時的結果。"""

    status: str
    song_paths: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def primary_url(self) -> Optional[str]:
        return self.song_paths[0] if self.song_paths else None


class GenerationJobClient(HttpJobClient):
    """呼叫 Sonauto generations API 建立與查詢生成作業。"""

    name = "sonauto"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key or ''}",
            "Content-Type": "application/json",
        }

    async def submit(self, prompt: str) -> JobHandle:
        return await self._create("/generations", {"prompt": prompt}, id_field="task_id")

    async def fetch_status(self, handle: JobHandle) -> Dict[str, Any]:
        return await self._read(f"/generations/{handle.job_id}", handle)

    def is_success(self, snapshot: Dict[str, Any]) -> bool:
        return snapshot.get("status") == GENERATION_SUCCESS

    def is_failure(self, snapshot: Dict[str, Any]) -> bool:
        return snapshot.get("status") == GENERATION_FAILURE

    @staticmethod
    def parse_result(snapshot: Dict[str, Any]) -> GenerationResult:
        """將終止快照整理為 GenerationResult。"""

        paths = snapshot.get("song_paths")
        # 非陣列的 song_paths 視為沒有產出
        if not isinstance(paths, list):
            paths = []
        metadata = snapshot.get("metadata") or {}
        return GenerationResult(
            status=str(snapshot.get("status")),
            song_paths=[path for path in paths if isinstance(path, str) and path],
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )
