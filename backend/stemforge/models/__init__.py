"""資料庫模型模組。"""
from .tables import DEFAULT_MIX_SETTINGS, Track

__all__ = [
    "DEFAULT_MIX_SETTINGS",
    "Track",
]
