"""遠端作業輪詢器。"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from stemforge.core.logging import emit_log
from stemforge.services.errors import JobFailed, JobQueryError, PollTimeout, TransientQueryError
from stemforge.services.jobs import JobClient, JobHandle, PollLog

Snapshot = Dict[str, Any]
StatusQuery = Callable[[JobHandle], Awaitable[Snapshot]]
Predicate = Callable[[Snapshot], bool]


class JobPoller:
    """以固定間隔查詢作業狀態，直到成功、失敗或超過上限。"""

    def __init__(
        self,
        *,
        interval: float,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts 必須大於 0")
        self._interval = interval
        self._max_attempts = max_attempts
        self._timeout = timeout
        self._sleep = sleep
        self._clock = clock

    async def poll(
        self,
        handle: JobHandle,
        status_query: StatusQuery,
        is_success: Predicate,
        is_failure: Predicate,
        *,
        log: Optional[PollLog] = None,
    ) -> Tuple[Snapshot, PollLog]:
        """查詢直到終止狀態，回傳最後一次快照與完整輪詢紀錄。

        每次查詢都會寫入紀錄，包含成功與失敗的那一次。暫時性的查詢錯誤
        會被記錄並視為尚未結束；不可重試的查詢錯誤記錄後直接拋出。
        """

        history = log if log is not None else PollLog()
        deadline = self._clock() + self._timeout if self._timeout is not None else None
        attempts = 0

        while True:
            attempts += 1
            try:
                snapshot = await status_query(handle)
            except TransientQueryError as exc:
                history.append({}, error=str(exc))
                emit_log("poll", "狀態查詢暫時失敗", job_id=handle.job_id, attempt=attempts)
            except JobQueryError as exc:
                history.append({}, error=str(exc))
                emit_log("poll", "狀態查詢被拒絕", job_id=handle.job_id, attempt=attempts)
                raise
            else:
                history.append(snapshot)
                emit_log("poll", "取得作業狀態", job_id=handle.job_id, attempt=attempts, status=snapshot.get("status"))
                if is_success(snapshot):
                    return snapshot, history
                if is_failure(snapshot):
                    raise JobFailed(job_id=handle.job_id, snapshot=snapshot, polls=history)

            if self._max_attempts is not None and attempts >= self._max_attempts:
                raise PollTimeout(job_id=handle.job_id, attempts=attempts, polls=history)
            if deadline is not None and self._clock() + self._interval > deadline:
                raise PollTimeout(job_id=handle.job_id, attempts=attempts, polls=history)
            await self._sleep(self._interval)

    async def submit_and_poll(
        self,
        client: JobClient,
        request: Any,
        *,
        log: Optional[PollLog] = None,
    ) -> Tuple[JobHandle, Snapshot, PollLog]:
        """建立作業後持續輪詢，回傳作業識別、終止快照與輪詢紀錄。"""

        handle = await client.submit(request)
        emit_log("submit", f"{client.name} 作業已建立", job_id=handle.job_id)
        snapshot, history = await self.poll(
            handle,
            client.fetch_status,
            client.is_success,
            client.is_failure,
            log=log,
        )
        return handle, snapshot, history
