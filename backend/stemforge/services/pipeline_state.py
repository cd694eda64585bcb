"""單次音軌流程累積的狀態。"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from stemforge.models.tables import Track
from stemforge.services.generation_client import GenerationResult
from stemforge.services.jobs import JobHandle, PollLog
from stemforge.services.separation_client import SeparationResult


@dataclass(frozen=True)
class UploadedAudio:
    """呼叫端上傳的音訊檔案。"""

    data: bytes
    file_name: str
    content_type: str


@dataclass
class PipelineRun:
    """流程各步驟寫入的結果，流程結束後即不再變動。"""

    track_id: UUID = field(default_factory=uuid4)
    prompt: Optional[str] = None
    workflow: Optional[str] = None
    source_url: Optional[str] = None
    upload_url: Optional[str] = None

    generation_handle: Optional[JobHandle] = None
    generation_snapshot: Optional[Dict[str, Any]] = None
    generation_result: Optional[GenerationResult] = None
    generation_polls: PollLog = field(default_factory=PollLog)

    separation_handle: Optional[JobHandle] = None
    separation_snapshot: Optional[Dict[str, Any]] = None
    separation_result: Optional[SeparationResult] = None
    separation_polls: PollLog = field(default_factory=PollLog)

    stem_urls: Dict[str, str] = field(default_factory=dict)
    original_track_url: Optional[str] = None
    generation_response_url: Optional[str] = None
    separation_response_url: Optional[str] = None
    generation_polls_url: Optional[str] = None
    separation_polls_url: Optional[str] = None

    written_paths: List[str] = field(default_factory=list)
    track: Optional[Track] = None

    @property
    def is_generated(self) -> bool:
        return self.upload_url is None

    @property
    def latest_job_id(self) -> Optional[str]:
        """最近一個已建立的遠端作業識別碼。"""

        handle = self.separation_handle or self.generation_handle
        return handle.job_id if handle is not None else None

    @property
    def storage_prefix(self) -> str:
        return f"tracks/{self.track_id}"
