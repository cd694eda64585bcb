"""音軌生成與分軌流程的協調器。"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from stemforge.core.logging import emit_error, emit_log
from stemforge.repositories.tracks import TrackRepository
from stemforge.services.errors import AssetFetchError, NoOutputProduced, PersistenceError, StemFetchError
from stemforge.services.generation_client import GenerationJobClient
from stemforge.services.pipeline_state import PipelineRun, UploadedAudio
from stemforge.services.polling import JobPoller
from stemforge.services.result_assembler import build_track_document
from stemforge.services.separation_client import SeparationJobClient
from stemforge.services.storage_service import AUDIO_CONTENT_TYPE, StorageService


class PipelineOrchestrator:
    """取得音訊、分軌、保存所有產物並寫入音軌文件。

    流程依序為：取得來源（上傳或生成）、提交分軌、輪詢分軌、下載分軌、
    寫入所有產物，最後才寫入音軌文件。任一步驟失敗即中止整個流程，
    已寫入的物件預設保留。
    """

    def __init__(
        self,
        *,
        generation_client: GenerationJobClient,
        separation_client: SeparationJobClient,
        poller: JobPoller,
        storage: StorageService,
        tracks: TrackRepository,
        http_client: httpx.AsyncClient,
        prompt: str,
        cleanup_on_failure: bool = False,
    ) -> None:
        self._generation = generation_client
        self._separation = separation_client
        self._poller = poller
        self._storage = storage
        self._tracks = tracks
        self._http = http_client
        self._prompt = prompt
        self._cleanup_on_failure = cleanup_on_failure

    async def run(self, upload: Optional[UploadedAudio] = None) -> PipelineRun:
        """執行完整流程並回傳累積的狀態。"""

        run = PipelineRun(workflow=self._separation.workflow)
        emit_log("pipeline", "開始處理音軌", track_id=str(run.track_id), uploaded=upload is not None)
        try:
            if upload is not None:
                await self._store_upload(run, upload)
            else:
                await self._generate(run)
            await self._separate(run)
            await self._fetch_stems(run)
            await self._persist_artifacts(run, upload)
            await self._persist_track(run)
        except Exception as exc:
            emit_error(
                getattr(exc, "stage", "pipeline"),
                "音軌流程失敗",
                track_id=str(run.track_id),
                job_id=getattr(exc, "job_id", None) or run.latest_job_id,
            )
            await self._cleanup(run)
            raise

        emit_log("pipeline", "音軌處理完成", track_id=str(run.track_id), stems=sorted(run.stem_urls))
        return run

    async def _store_upload(self, run: PipelineRun, upload: UploadedAudio) -> None:
        path = self._storage.build_upload_path(
            file_name=upload.file_name,
            mime_type=upload.content_type,
            file_size=len(upload.data),
        )
        run.upload_url = await self._save_bytes(run, path, upload.data, upload.content_type)
        run.source_url = run.upload_url
        emit_log("acquire", "已保存上傳音訊", track_id=str(run.track_id), path=path)

    async def _generate(self, run: PipelineRun) -> None:
        run.prompt = self._prompt
        handle, snapshot, _ = await self._poller.submit_and_poll(
            self._generation, self._prompt, log=run.generation_polls
        )
        run.generation_handle = handle
        run.generation_snapshot = snapshot
        run.generation_result = self._generation.parse_result(snapshot)

        source_url = run.generation_result.primary_url
        if source_url is None:
            raise NoOutputProduced("Sonauto 未產生任何音軌", job_id=handle.job_id)
        run.source_url = source_url
        emit_log("resolve", "取得生成音軌", track_id=str(run.track_id), job_id=handle.job_id)

    async def _separate(self, run: PipelineRun) -> None:
        handle, snapshot, _ = await self._poller.submit_and_poll(
            self._separation, run.source_url, log=run.separation_polls
        )
        run.separation_handle = handle
        run.separation_snapshot = snapshot
        run.separation_result = self._separation.parse_result(snapshot)
        if not run.separation_result.stems:
            raise NoOutputProduced("Music.AI 未回傳任何分軌", job_id=handle.job_id)

    async def _fetch_stems(self, run: PipelineRun) -> None:
        if run.separation_result is None:
            raise RuntimeError("分軌結果尚未取得，無法下載分軌")
        for stem_name, remote_url in run.separation_result.stems.items():
            try:
                data = await self._download(remote_url)
            except httpx.HTTPError as exc:
                raise StemFetchError(stem_name=stem_name, url=remote_url) from exc
            path = self._storage.build_stem_path(stem_name)
            run.stem_urls[stem_name] = await self._save_bytes(run, path, data, AUDIO_CONTENT_TYPE)
            emit_log("fetch", "已保存分軌", track_id=str(run.track_id), stem=stem_name)

    async def _persist_artifacts(self, run: PipelineRun, upload: Optional[UploadedAudio]) -> None:
        prefix = run.storage_prefix
        if upload is not None:
            original, content_type = upload.data, upload.content_type
        else:
            if run.source_url is None:
                raise RuntimeError("缺少生成音軌網址，無法保存原始音訊")
            try:
                original = await self._download(run.source_url)
            except httpx.HTTPError as exc:
                raise AssetFetchError("無法下載生成音軌", url=run.source_url) from exc
            content_type = AUDIO_CONTENT_TYPE
        run.original_track_url = await self._save_bytes(run, prefix, original, content_type)

        if run.generation_snapshot is not None:
            run.generation_response_url = await self._save_json(
                run, f"{prefix}/sonauto_response.json", run.generation_snapshot
            )
            run.generation_polls_url = await self._save_json(
                run, f"{prefix}/polls/sonauto_polls.json", run.generation_polls.as_list()
            )
        run.separation_response_url = await self._save_json(
            run, f"{prefix}/musicai_response.json", run.separation_snapshot
        )
        run.separation_polls_url = await self._save_json(
            run, f"{prefix}/polls/musicai_polls.json", run.separation_polls.as_list()
        )

    async def _persist_track(self, run: PipelineRun) -> None:
        track = build_track_document(run)
        run.track = await run_in_threadpool(self._tracks.create_track, track)
        emit_log("persist", "音軌文件已寫入", track_id=str(run.track_id))

    async def _download(self, url: str) -> bytes:
        response = await self._http.get(url)
        response.raise_for_status()
        return response.content

    async def _save_bytes(self, run: PipelineRun, path: str, data: bytes, content_type: str) -> str:
        url = await run_in_threadpool(self._storage.save_bytes, path, data, content_type=content_type)
        run.written_paths.append(path)
        return url

    async def _save_json(self, run: PipelineRun, path: str, payload: Any) -> str:
        url = await run_in_threadpool(self._storage.save_json, path, payload)
        run.written_paths.append(path)
        return url

    async def _cleanup(self, run: PipelineRun) -> None:
        if not self._cleanup_on_failure or not run.written_paths:
            return
        try:
            await run_in_threadpool(self._storage.remove, list(run.written_paths))
        except PersistenceError:
            emit_error("cleanup", "清除孤立物件失敗", track_id=str(run.track_id), paths=run.written_paths)
            return
        emit_log("cleanup", "已清除孤立物件", track_id=str(run.track_id), count=len(run.written_paths))
