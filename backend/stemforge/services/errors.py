"""音軌流程的錯誤類型。"""
from __future__ import annotations

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """流程中任一步驟失敗的共同基底。"""

    stage: str = "pipeline"

    def __init__(self, message: str, *, job_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.job_id = job_id


class SubmissionError(PipelineError):
    """遠端服務拒絕建立作業。"""

    stage = "submit"


class JobQueryError(PipelineError):
    """查詢作業狀態失敗且不應重試。"""

    stage = "poll"


class TransientQueryError(JobQueryError):
    """查詢作業狀態暫時失敗，輪詢會再次嘗試。"""


class JobFailed(PipelineError):
    """遠端作業回報終止失敗。"""

    stage = "poll"

    def __init__(self, *, job_id: str, snapshot: Dict[str, Any], polls: Any = None) -> None:
        super().__init__(f"Job {job_id} reported failure", job_id=job_id)
        self.snapshot = snapshot
        self.polls = polls


class PollTimeout(PipelineError):
    """輪詢次數或時間超過上限仍未結束。"""

    stage = "poll"

    def __init__(self, *, job_id: str, attempts: int, polls: Any = None) -> None:
        super().__init__(f"Job {job_id} not finished after {attempts} polls", job_id=job_id)
        self.attempts = attempts
        self.polls = polls


class NoOutputProduced(PipelineError):
    """作業成功但沒有任何可用輸出。"""

    stage = "resolve"


class AssetFetchError(PipelineError):
    """下載遠端音訊資源失敗。"""

    stage = "fetch"

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class StemFetchError(AssetFetchError):
    """下載單一分軌失敗，整個流程隨之中止。"""

    def __init__(self, *, stem_name: str, url: str) -> None:
        super().__init__(f"Failed to fetch stem '{stem_name}'", url=url)
        self.stem_name = stem_name


class PersistenceError(PipelineError):
    """寫入儲存空間或資料庫失敗。"""

    stage = "persist"

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path
