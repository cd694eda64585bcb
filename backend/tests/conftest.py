"""測試共用的 fixture。"""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import pytest

from stemforge.services.generation_client import GenerationJobClient
from stemforge.services.jobs import JobHandle
from stemforge.services.pipeline_state import PipelineRun
from stemforge.services.separation_client import SeparationJobClient
from stemforge.services.storage_service import StorageService
from support import PUBLIC_BASE, StubSupabaseClient

GENERATION_SUBMITTED_AT = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
SEPARATION_SUBMITTED_AT = datetime(2026, 10, 19, 8, 3, 30, tzinfo=timezone.utc)


@pytest.fixture
def supabase_stub() -> StubSupabaseClient:
    return StubSupabaseClient()


@pytest.fixture
def storage_service(supabase_stub: StubSupabaseClient) -> StorageService:
    return StorageService(client=supabase_stub, bucket="media", max_bytes=1024 * 1024)


@pytest.fixture
def completed_run() -> PipelineRun:
    """建立一次已完成的生成流程狀態。"""

    run = PipelineRun(
        track_id=UUID("11111111-2222-3333-4444-555555555555"),
        prompt="AI-generated track",
        workflow="music-ai/stems-vocals-accompaniment",
        source_url="https://sonauto.example.test/song.mp3",
    )
    generation_snapshot = {
        "status": "SUCCESS",
        "song_paths": ["https://sonauto.example.test/song.mp3"],
        "metadata": {"duration": 95, "genre": "lofi", "bpm": 82, "key": "C", "scale": "minor", "seed": 7},
    }
    separation_snapshot = {
        "status": "SUCCEEDED",
        "result": {
            "vocals": "https://musicai.example.test/vocals.mp3",
            "accompaniment": "https://musicai.example.test/accompaniment.mp3",
            "duration": 95.2,
            "sampleRate": 44100,
            "bitDepth": 16,
        },
    }
    run.generation_handle = JobHandle(job_id="gen-task-1", submitted_at=GENERATION_SUBMITTED_AT)
    run.generation_snapshot = generation_snapshot
    run.generation_result = GenerationJobClient.parse_result(generation_snapshot)
    run.generation_polls.append({"status": "PENDING"})
    run.generation_polls.append(generation_snapshot)

    run.separation_handle = JobHandle(job_id="sep-job-1", submitted_at=SEPARATION_SUBMITTED_AT)
    run.separation_snapshot = separation_snapshot
    run.separation_result = SeparationJobClient.parse_result(separation_snapshot)
    run.separation_polls.append(separation_snapshot)

    prefix = f"{PUBLIC_BASE}/media/tracks/{run.track_id}"
    run.stem_urls = {
        "vocals": f"{PUBLIC_BASE}/media/stems/1_vocals.mp3",
        "accompaniment": f"{PUBLIC_BASE}/media/stems/2_accompaniment.mp3",
    }
    run.original_track_url = prefix
    run.generation_response_url = f"{prefix}/sonauto_response.json"
    run.separation_response_url = f"{prefix}/musicai_response.json"
    run.generation_polls_url = f"{prefix}/polls/sonauto_polls.json"
    run.separation_polls_url = f"{prefix}/polls/musicai_polls.json"
    return run
