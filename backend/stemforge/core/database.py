"""資料庫連線與 Session 工具。"""
from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from stemforge.core.config import settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """延遲建立 SQLModel engine，避免匯入時即連線。"""

    return create_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )


def get_session() -> Iterator[Session]:
    """提供資料庫 Session 供 FastAPI 相依注入使用。"""

    with Session(get_engine()) as session:
        yield session


__all__ = ["get_engine", "get_session", "SQLModel", "Session"]
