from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TASKPRO_", env_file=".env", extra="ignore"
    )

    api_url: str = "http://localhost:8000"
    request_timeout: float = 5.0  # seconds, applied by httpx
    storage_backend: str = "file"  # file | redis | memory
    storage_dir: str = ".taskpro"
    storage_namespace: str = "taskManagerPro_"
    storage_quota_bytes: int | None = None
    redis_dsn: str = "redis://localhost:6379/0"
    connectivity_interval: float = 10.0
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
