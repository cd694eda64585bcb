"""測試共用的替身。"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import UUID

from stemforge.models.tables import Track
from stemforge.services.errors import PersistenceError
from stemforge.services.generation_client import GenerationJobClient
from stemforge.services.jobs import JobHandle
from stemforge.services.separation_client import SeparationJobClient

PUBLIC_BASE = "https://cdn.example.test"


class StubBucket:
    """模擬 Supabase Storage bucket，以字典保存物件。"""

    def __init__(self, name: str) -> None:
        self.name = name
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.fail_paths: set[str] = set()

    def upload(self, path: str, file: bytes, file_options: Dict[str, str] | None = None) -> Dict[str, str]:
        if path in self.fail_paths:
            raise RuntimeError("storage unavailable")
        self.objects[path] = file
        self.content_types[path] = (file_options or {}).get("content-type", "")
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path: str) -> str:
        return f"{PUBLIC_BASE}/{self.name}/{path}"

    def remove(self, paths: List[str]) -> List[Dict[str, str]]:
        for path in paths:
            self.objects.pop(path, None)
        return [{"name": path} for path in paths]


class StubStorage:
    """模擬 storage.from_ 呼叫。"""

    def __init__(self) -> None:
        self.bucket: str | None = None
        self.bucket_obj = StubBucket("media")

    def from_(self, bucket: str) -> StubBucket:
        self.bucket = bucket
        return self.bucket_obj


class StubSupabaseClient:
    """簡單的 Supabase client 替身。"""

    def __init__(self) -> None:
        self.storage = StubStorage()


class InMemoryTrackRepository:
    """以記憶體保存音軌，並記錄寫入當下已存在的物件。"""

    def __init__(self, bucket: StubBucket | None = None, *, fail: bool = False) -> None:
        self.tracks: Dict[UUID, Track] = {}
        self.objects_at_write: set[str] = set()
        self._bucket = bucket
        self._fail = fail

    def create_track(self, track: Track) -> Track:
        if self._fail:
            raise PersistenceError(f"無法寫入音軌 {track.track_id}")
        if self._bucket is not None:
            self.objects_at_write = set(self._bucket.objects)
        track.created_at = datetime.now(timezone.utc)
        self.tracks[track.track_id] = track
        return track

    def get_track(self, track_id: UUID) -> Track | None:
        return self.tracks.get(track_id)


class ScriptedGenerationClient:
    """依序回傳預先設定狀態的生成客戶端。"""

    name = "sonauto"
    is_success = GenerationJobClient.is_success
    is_failure = GenerationJobClient.is_failure
    parse_result = staticmethod(GenerationJobClient.parse_result)

    def __init__(self, statuses: List[Dict[str, Any]], job_id: str = "gen-task-1") -> None:
        self._statuses = statuses
        self._job_id = job_id
        self.submitted: List[str] = []
        self.status_calls = 0

    async def submit(self, prompt: str) -> JobHandle:
        self.submitted.append(prompt)
        return JobHandle(job_id=self._job_id)

    async def fetch_status(self, handle: JobHandle) -> Dict[str, Any]:
        snapshot = self._statuses[min(self.status_calls, len(self._statuses) - 1)]
        self.status_calls += 1
        return snapshot


class ScriptedSeparationClient:
    """依序回傳預先設定狀態的分軌客戶端。"""

    name = "musicai"
    is_success = SeparationJobClient.is_success
    is_failure = SeparationJobClient.is_failure
    parse_result = staticmethod(SeparationJobClient.parse_result)

    def __init__(
        self,
        statuses: List[Dict[str, Any]],
        job_id: str = "sep-job-1",
        workflow: str = "music-ai/stems-vocals-accompaniment",
    ) -> None:
        self._statuses = statuses
        self._job_id = job_id
        self.workflow = workflow
        self.submitted: List[str] = []
        self.status_calls = 0

    async def submit(self, source_url: str) -> JobHandle:
        self.submitted.append(source_url)
        return JobHandle(job_id=self._job_id)

    async def fetch_status(self, handle: JobHandle) -> Dict[str, Any]:
        snapshot = self._statuses[min(self.status_calls, len(self._statuses) - 1)]
        self.status_calls += 1
        return snapshot


async def no_sleep(_: float) -> None:
    """略過輪詢間隔。"""
