"""音軌文件資料存取層。"""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from stemforge.models.tables import Track
from stemforge.services.errors import PersistenceError


class TrackRepository:
    """提供音軌文件的寫入與讀取。"""

    def __init__(self, session: Session) -> None:
        """使用既有的 Session 初始化儲存庫。"""

        self._session = session

    def create_track(self, track: Track) -> Track:
        """寫入音軌並回寫資料庫指派的欄位。"""

        try:
            self._session.add(track)
            self._session.commit()
            self._session.refresh(track)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError(f"無法寫入音軌 {track.track_id}") from exc
        return track

    def get_track(self, track_id: UUID) -> Track | None:
        """依主鍵取得音軌。"""

        return self._session.get(Track, track_id)
