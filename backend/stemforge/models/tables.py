"""SQLModel 資料表定義。"""
from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# Postgres 使用 JSONB，其他方言退回一般 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")

DEFAULT_MIX_SETTINGS: dict[str, Any] = {
    "volume": 1.0,
    "reverb": 0.5,
    "eq": {"low": 0.2, "mid": 0.5, "high": 0.8},
}


class Track(SQLModel, table=True):
    """音軌主檔，每次流程成功時建立一筆且不再更新。"""

    __tablename__ = "tracks"

    track_id: UUID = Field(default_factory=uuid4, primary_key=True, description="音軌主鍵")
    original_track_url: str = Field(description="原始音訊的儲存網址")
    stems: dict[str, str] = Field(
        default_factory=dict,
        sa_column=Column(JSONType, nullable=False),
        description="分軌名稱對應儲存網址",
    )
    mix_settings: dict[str, Any] = Field(
        default_factory=lambda: deepcopy(DEFAULT_MIX_SETTINGS),
        sa_column=Column(JSONType, nullable=False),
        description="混音預設值",
    )
    generation: Optional[dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSONType, nullable=True),
        description="Sonauto 生成作業摘要；上傳來源為空",
    )
    separation: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONType, nullable=False),
        description="Music.AI 分軌作業摘要",
    )
    storage: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONType, nullable=False),
        description="所有產物的儲存位置",
    )
    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False),
        description="建立時間 (由資料庫指派)",
    )

    __table_args__ = (Index("ix_tracks_created_at", "created_at"),)
