"""作業輪詢器測試。"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from stemforge.services.errors import JobFailed, JobQueryError, PollTimeout, TransientQueryError
from stemforge.services.jobs import JobHandle, PollLog
from stemforge.services.polling import JobPoller
from support import ScriptedGenerationClient

HANDLE = JobHandle(job_id="task-1")


class ScriptedStatus:
    """依序回傳快照或拋出例外的查詢函式。"""

    def __init__(self, responses: List[Any]) -> None:
        self._responses = responses
        self.calls = 0

    async def __call__(self, handle: JobHandle) -> Dict[str, Any]:
        response = self._responses[min(self.calls, len(self._responses) - 1)]
        self.calls += 1
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    """記錄每次等待秒數。"""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """由 sleep 推進的假時鐘。"""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.now += delay


def _is_success(snapshot: Dict[str, Any]) -> bool:
    return snapshot.get("status") == "SUCCESS"


def _is_failure(snapshot: Dict[str, Any]) -> bool:
    return snapshot.get("status") == "FAILURE"


def test_poll_returns_final_snapshot_with_full_history() -> None:
    """成功時回傳最後一次快照，且紀錄包含每一次查詢。"""

    final = {"status": "SUCCESS", "song_paths": ["https://a"]}
    query = ScriptedStatus([{"status": "PENDING"}, {"status": "PROCESSING"}, final])
    sleep = RecordingSleep()
    poller = JobPoller(interval=5.0, max_attempts=10, sleep=sleep)

    snapshot, history = asyncio.run(poller.poll(HANDLE, query, _is_success, _is_failure))

    assert snapshot == final
    assert len(history) == 3
    assert history.latest is not None
    assert history.latest.status is snapshot
    assert [record.status["status"] for record in history] == ["PENDING", "PROCESSING", "SUCCESS"]
    assert sleep.delays == [5.0, 5.0]


def test_poll_failure_on_third_attempt_keeps_three_records() -> None:
    """第三次查詢回報失敗時中止，並保留三筆紀錄。"""

    failing = {"status": "FAILURE", "error": "model crashed"}
    query = ScriptedStatus([{"status": "PENDING"}, {"status": "PENDING"}, failing])
    poller = JobPoller(interval=5.0, max_attempts=10, sleep=RecordingSleep())
    log = PollLog()

    with pytest.raises(JobFailed) as exc_info:
        asyncio.run(poller.poll(HANDLE, query, _is_success, _is_failure, log=log))

    assert exc_info.value.job_id == "task-1"
    assert exc_info.value.snapshot == failing
    assert exc_info.value.polls is log
    assert len(log) == 3
    assert query.calls == 3


def test_poll_stops_after_max_attempts() -> None:
    """永遠不結束的作業在達到次數上限後拋出 PollTimeout。"""

    query = ScriptedStatus([{"status": "PENDING"}])
    sleep = RecordingSleep()
    poller = JobPoller(interval=1.0, max_attempts=4, sleep=sleep)

    with pytest.raises(PollTimeout) as exc_info:
        asyncio.run(poller.poll(HANDLE, query, _is_success, _is_failure))

    assert exc_info.value.attempts == 4
    assert len(exc_info.value.polls) == 4
    assert len(sleep.delays) == 3


def test_poll_stops_at_deadline() -> None:
    """超過時間上限時不再等待下一次查詢。"""

    clock = FakeClock()
    query = ScriptedStatus([{"status": "PENDING"}])
    poller = JobPoller(interval=5.0, timeout=10.0, sleep=clock.sleep, clock=clock)

    with pytest.raises(PollTimeout) as exc_info:
        asyncio.run(poller.poll(HANDLE, query, _is_success, _is_failure))

    assert exc_info.value.attempts == 3
    assert clock.now == 10.0


def test_poll_records_transient_errors_and_retries() -> None:
    """暫時性查詢錯誤會被記錄並繼續輪詢。"""

    query = ScriptedStatus([TransientQueryError("status returned HTTP 503"), {"status": "SUCCESS"}])
    poller = JobPoller(interval=5.0, max_attempts=5, sleep=RecordingSleep())

    snapshot, history = asyncio.run(poller.poll(HANDLE, query, _is_success, _is_failure))

    assert snapshot == {"status": "SUCCESS"}
    records = history.records
    assert len(records) == 2
    assert records[0].error == "status returned HTTP 503"
    assert records[0].status == {}
    assert "error" in records[0].as_dict()
    assert "error" not in records[1].as_dict()


def test_poll_propagates_non_transient_query_error() -> None:
    """不可重試的查詢錯誤直接中止輪詢，該次查詢仍留下紀錄。"""

    query = ScriptedStatus([{"status": "PENDING"}, JobQueryError("status rejected with HTTP 404")])
    poller = JobPoller(interval=5.0, max_attempts=5, sleep=RecordingSleep())
    log = PollLog()

    with pytest.raises(JobQueryError):
        asyncio.run(poller.poll(HANDLE, query, _is_success, _is_failure, log=log))

    assert query.calls == 2
    assert len(log) == query.calls
    assert log.latest is not None
    assert log.latest.status == {}
    assert "HTTP 404" in (log.latest.error or "")


def test_poller_rejects_non_positive_max_attempts() -> None:
    with pytest.raises(ValueError):
        JobPoller(interval=1.0, max_attempts=0)


def test_submit_and_poll_uses_client_predicates() -> None:
    """submit_and_poll 透過客戶端建立作業並使用其狀態判斷。"""

    client = ScriptedGenerationClient([{"status": "PENDING"}, {"status": "SUCCESS", "song_paths": ["https://a"]}])
    poller = JobPoller(interval=5.0, max_attempts=5, sleep=RecordingSleep())

    handle, snapshot, history = asyncio.run(poller.submit_and_poll(client, "lofi beat"))

    assert client.submitted == ["lofi beat"]
    assert handle.job_id == "gen-task-1"
    assert snapshot["status"] == "SUCCESS"
    assert len(history) == 2


def test_poll_log_as_list_is_json_ready() -> None:
    log = PollLog()
    log.append({"status": "PENDING"})

    payload = log.as_list()

    assert payload[0]["status"] == {"status": "PENDING"}
    assert isinstance(payload[0]["timestamp"], str)
