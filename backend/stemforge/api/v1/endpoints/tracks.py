"""/v1/tracks API endpoints."""
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from stemforge.core.config import settings
from stemforge.core.database import get_session
from stemforge.repositories.tracks import TrackRepository
from stemforge.schemas.track import TrackGenerationResponse
from stemforge.services.errors import (
    JobFailed,
    JobQueryError,
    NoOutputProduced,
    PollTimeout,
    SubmissionError,
)
from stemforge.services.generation_client import GenerationJobClient
from stemforge.services.pipeline_service import PipelineOrchestrator
from stemforge.services.pipeline_state import UploadedAudio
from stemforge.services.polling import JobPoller
from stemforge.services.result_assembler import assemble_response
from stemforge.services.separation_client import SeparationJobClient
from stemforge.services.storage_service import (
    StorageService,
    UploadValidationError,
    get_storage_service,
)

router = APIRouter(prefix="/tracks", tags=["tracks"])

GENERIC_FAILURE_MESSAGE = "Failed to generate track"


async def get_pipeline_orchestrator(
    session=Depends(get_session),
    storage: StorageService = Depends(get_storage_service),
) -> AsyncIterator[PipelineOrchestrator]:
    """提供 FastAPI 相依性所需的 PipelineOrchestrator，請求結束時關閉 HTTP 連線。"""

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http_client:
        yield PipelineOrchestrator(
            generation_client=GenerationJobClient(
                client=http_client,
                base_url=settings.sonauto_api_url,
                api_key=settings.sonauto_api_key,
            ),
            separation_client=SeparationJobClient(
                client=http_client,
                base_url=settings.musicai_api_url,
                api_key=settings.musicai_api_key,
                workflow=settings.musicai_workflow,
            ),
            poller=JobPoller(
                interval=settings.poll_interval_seconds,
                max_attempts=settings.poll_max_attempts,
                timeout=settings.poll_timeout_seconds,
            ),
            storage=storage,
            tracks=TrackRepository(session),
            http_client=http_client,
            prompt=settings.generation_prompt,
            cleanup_on_failure=settings.cleanup_on_failure,
        )


def _failure_status(exc: Exception) -> int:
    """依錯誤類型決定 HTTP 狀態碼，回應內容維持一致。"""

    if isinstance(exc, PollTimeout):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, (SubmissionError, JobQueryError, JobFailed, NoOutputProduced)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.post(
    "/generate",
    response_model=TrackGenerationResponse,
    summary="生成或上傳音軌並進行分軌",
)
async def generate_track(
    track: Optional[UploadFile] = File(default=None),
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> TrackGenerationResponse:
    """有上傳檔案時直接分軌，否則先以 Sonauto 生成音軌。"""

    upload: Optional[UploadedAudio] = None
    if track is not None:
        upload = UploadedAudio(
            data=await track.read(),
            file_name=track.filename or "track",
            content_type=track.content_type or "application/octet-stream",
        )

    try:
        run = await orchestrator.run(upload)
    except UploadValidationError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.error_code, "message": exc.message}},
        )
    except Exception as exc:  # noqa: B902 - 流程內已記錄，對外僅回傳通用錯誤
        return JSONResponse(
            status_code=_failure_status(exc),
            content={"error": {"code": "TRACK_GENERATION_FAILED", "message": GENERIC_FAILURE_MESSAGE}},
        )

    return assemble_response(run)
