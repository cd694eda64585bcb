"""音軌生成 API 的 Pydantic Schema。"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationSummary(BaseModel):
    """Sonauto 生成作業摘要。"""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(serialization_alias="taskId")
    submitted_at: datetime = Field(serialization_alias="submittedAt")
    generation_status: str = Field(serialization_alias="generationStatus")
    prompt: str
    song_paths: List[str] = Field(serialization_alias="songPaths")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SeparationSummary(BaseModel):
    """Music.AI 分軌作業摘要。"""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(serialization_alias="jobId")
    submitted_at: datetime = Field(serialization_alias="submittedAt")
    status: str
    workflow: str
    result: Dict[str, Any] = Field(default_factory=dict)


class JobMetadata(BaseModel):
    """兩個遠端作業的摘要。"""

    model_config = ConfigDict(populate_by_name=True)

    sonauto: Optional[GenerationSummary] = None
    music_ai: SeparationSummary = Field(serialization_alias="musicAi")


class ProviderLocations(BaseModel):
    """依服務區分的儲存網址。"""

    model_config = ConfigDict(populate_by_name=True)

    sonauto: Optional[str] = None
    music_ai: Optional[str] = Field(default=None, serialization_alias="musicAi")


class StorageLocations(BaseModel):
    """所有已寫入產物的儲存位置。"""

    model_config = ConfigDict(populate_by_name=True)

    upload: Optional[str] = None
    original_track: Optional[str] = Field(default=None, serialization_alias="originalTrack")
    stems: Dict[str, str] = Field(default_factory=dict)
    responses: ProviderLocations = Field(default_factory=ProviderLocations)
    polls: ProviderLocations = Field(default_factory=ProviderLocations)


class TrackGenerationResponse(BaseModel):
    """音軌生成成功的回傳格式。"""

    model_config = ConfigDict(populate_by_name=True)

    track_id: str = Field(serialization_alias="trackId")
    track_url: Optional[str] = Field(default=None, serialization_alias="trackUrl")
    stems: Dict[str, str]
    message: str
    metadata: JobMetadata
    storage: StorageLocations
