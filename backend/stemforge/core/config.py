"""核心設定模組。"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """系統設定載入器，統一管理環境變數。"""

    api_v1_prefix: str = "/v1"
    project_name: str = "StemForge API"
    log_level: str = "INFO"
    database_url: str = "sqlite:///./stemforge.db"
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    supabase_storage_bucket: str | None = None
    upload_max_bytes: int = 100 * 1024 * 1024

    # Sonauto 生成服務
    sonauto_api_url: str = "https://api.sonauto.ai/v1"
    sonauto_api_key: str | None = None
    generation_prompt: str = "AI-generated track"

    # Music.AI 分軌服務
    musicai_api_url: str = "https://api.music.ai/api"
    musicai_api_key: str | None = None
    musicai_workflow: str = "music-ai/stems-vocals-accompaniment"

    poll_interval_seconds: float = 5.0
    poll_max_attempts: int | None = 360
    poll_timeout_seconds: float | None = None
    http_timeout_seconds: float = 30.0
    cleanup_on_failure: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """建立單例設定，避免重複解析設定來源。"""

    return Settings()


# settings 物件提供全域使用的設定值
settings: Settings = get_settings()
