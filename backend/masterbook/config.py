# backend/masterbook/config.py

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # project root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/masterbook.db"
    redis_url: str | None = None

    storage_backend: Literal["sql", "file"] = "sql"
    data_file: str = "./data/masterbook.json"

    lock_timeout_seconds: float = 10.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite path -> absolute, anchored at the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def resolved_data_file(self) -> Path:
        path = Path(self.data_file)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


settings = Settings()
