"""將流程狀態整理為音軌文件與 API 回應。"""
from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Optional

from stemforge.models.tables import DEFAULT_MIX_SETTINGS, Track
from stemforge.schemas.track import (
    GenerationSummary,
    JobMetadata,
    ProviderLocations,
    SeparationSummary,
    StorageLocations,
    TrackGenerationResponse,
)
from stemforge.services.pipeline_state import PipelineRun

SUCCESS_MESSAGE = "Track generated and stored successfully!"

# 寫入文件時保留的生成屬性
GENERATION_METADATA_KEYS = ("duration", "genre", "mood", "instrumentation", "bpm", "key", "scale")


def _generation_summary(run: PipelineRun, *, full_metadata: bool) -> Optional[GenerationSummary]:
    if run.generation_handle is None or run.generation_result is None:
        return None
    result = run.generation_result
    if full_metadata:
        metadata = deepcopy(result.metadata)
    else:
        metadata = {key: result.metadata.get(key) for key in GENERATION_METADATA_KEYS}
    return GenerationSummary(
        task_id=run.generation_handle.job_id,
        submitted_at=run.generation_handle.submitted_at,
        generation_status=result.status,
        prompt=run.prompt or "",
        song_paths=list(result.song_paths),
        metadata=metadata,
    )


def _separation_summary(run: PipelineRun, *, full_result: bool) -> SeparationSummary:
    if run.separation_handle is None or run.separation_result is None:
        raise ValueError("分軌作業尚未完成，無法整理摘要")
    result = run.separation_result
    if full_result:
        raw: Dict[str, Any] = deepcopy((run.separation_snapshot or {}).get("result") or {})
    else:
        raw = dict(result.stems)
        raw.update(
            {
                "duration": result.duration,
                "sampleRate": result.sample_rate,
                "bitDepth": result.bit_depth,
            }
        )
    return SeparationSummary(
        job_id=run.separation_handle.job_id,
        submitted_at=run.separation_handle.submitted_at,
        status=result.status,
        workflow=run.workflow or "",
        result=raw,
    )


def _storage_locations(run: PipelineRun) -> StorageLocations:
    return StorageLocations(
        upload=run.upload_url,
        original_track=run.original_track_url,
        stems=dict(run.stem_urls),
        responses=ProviderLocations(sonauto=run.generation_response_url, music_ai=run.separation_response_url),
        polls=ProviderLocations(sonauto=run.generation_polls_url, music_ai=run.separation_polls_url),
    )


def build_track_document(run: PipelineRun) -> Track:
    """建立寫入文件資料庫的音軌紀錄。"""

    if run.original_track_url is None:
        raise ValueError("原始音訊尚未寫入，無法建立音軌")
    generation = _generation_summary(run, full_metadata=False)
    separation = _separation_summary(run, full_result=False)
    return Track(
        track_id=run.track_id,
        original_track_url=run.original_track_url,
        stems=dict(run.stem_urls),
        mix_settings=deepcopy(DEFAULT_MIX_SETTINGS),
        generation=generation.model_dump(by_alias=True, mode="json") if generation else None,
        separation=separation.model_dump(by_alias=True, mode="json"),
        storage=_storage_locations(run).model_dump(by_alias=True),
    )


def assemble_response(run: PipelineRun) -> TrackGenerationResponse:
    """整理回傳給呼叫端的結果，尚未產生的欄位以 None 表示。"""

    return TrackGenerationResponse(
        track_id=str(run.track_id),
        track_url=run.original_track_url,
        stems=dict(run.stem_urls),
        message=SUCCESS_MESSAGE,
        metadata=JobMetadata(
            sonauto=_generation_summary(run, full_metadata=True),
            music_ai=_separation_summary(run, full_result=True),
        ),
        storage=_storage_locations(run),
    )
