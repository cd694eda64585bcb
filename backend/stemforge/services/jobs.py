"""遠端非同步作業的共用型別與 HTTP 客戶端基底。"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

import httpx

from stemforge.services.errors import JobQueryError, SubmissionError, TransientQueryError


def _utc_now() -> datetime:
    """產生帶有 UTC 時區資訊的當前時間。"""

    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class JobHandle:
    """遠端作業的識別資訊。"""

    job_id: str
    submitted_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class PollRecord:
    """單次輪詢的原始回應與擷取時間。"""

    timestamp: datetime
    status: Dict[str, Any]
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"timestamp": self.timestamp.isoformat(), "status": self.status}
        if self.error is not None:
            record["error"] = self.error
        return record


class PollLog:
    """只允許附加的輪詢紀錄。"""

    def __init__(self) -> None:
        self._records: List[PollRecord] = []

    def append(self, status: Dict[str, Any], *, error: Optional[str] = None) -> PollRecord:
        record = PollRecord(timestamp=_utc_now(), status=status, error=error)
        self._records.append(record)
        return record

    @property
    def records(self) -> Tuple[PollRecord, ...]:
        return tuple(self._records)

    @property
    def latest(self) -> PollRecord | None:
        return self._records[-1] if self._records else None

    def as_list(self) -> List[Dict[str, Any]]:
        """轉為可序列化的 JSON 陣列。"""

        return [record.as_dict() for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PollRecord]:
        return iter(self.records)


class JobClient(Protocol):
    """可被輪詢器驅動的遠端作業客戶端。"""

    name: str

    async def submit(self, request: Any) -> JobHandle:
        ...

    async def fetch_status(self, handle: JobHandle) -> Dict[str, Any]:
        ...

    def is_success(self, snapshot: Dict[str, Any]) -> bool:
        ...

    def is_failure(self, snapshot: Dict[str, Any]) -> bool:
        ...


class HttpJobClient(ABC):
    """以 httpx 呼叫遠端作業 API 的共用邏輯。"""

    name: str = "job"

    def __init__(self, *, client: httpx.AsyncClient, base_url: str, api_key: str | None) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """回傳呼叫遠端 API 時使用的標頭。"""

    async def _create(self, path: str, payload: Dict[str, Any], id_field: str) -> JobHandle:
        """送出建立作業請求並取出作業識別碼。"""

        url = f"{self._base_url}{path}"
        try:
            response = await self._client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as exc:
            raise SubmissionError(f"{self.name} submission request failed") from exc

        if not response.is_success:
            raise SubmissionError(f"{self.name} submission rejected with HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise SubmissionError(f"{self.name} submission returned invalid JSON") from exc

        job_id = body.get(id_field) if isinstance(body, dict) else None
        if not job_id:
            raise SubmissionError(f"{self.name} submission response missing '{id_field}'")
        return JobHandle(job_id=str(job_id))

    async def _read(self, path: str, handle: JobHandle) -> Dict[str, Any]:
        """讀取作業狀態，區分可重試與不可重試的錯誤。"""

        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise TransientQueryError(f"{self.name} status request failed", job_id=handle.job_id) from exc

        if response.status_code >= 500:
            raise TransientQueryError(
                f"{self.name} status returned HTTP {response.status_code}", job_id=handle.job_id
            )
        if not response.is_success:
            raise JobQueryError(
                f"{self.name} status rejected with HTTP {response.status_code}", job_id=handle.job_id
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TransientQueryError(f"{self.name} status returned invalid JSON", job_id=handle.job_id) from exc
        if not isinstance(body, dict):
            raise TransientQueryError(f"{self.name} status returned unexpected payload", job_id=handle.job_id)
        return body
