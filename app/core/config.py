from functools import lru_cache
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), case_sensitive=False)

    APP_NAME: str = "QR Family Backend"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    DATABASE_URL: str = "sqlite:///./qr_family.db"
    # "sql" persists through DATABASE_URL, "memory" keeps documents in-process.
    DOCUMENT_STORE: str = "sql"
    QR_COLLECTION: str = "qr-ids"

    # Shared secret required to generate new QR ids. Empty disables generation.
    API_PASSWORD: str = ""

    QR_CONDITIONAL_WRITES: bool = True
    QR_WRITE_ATTEMPTS: int = 5
    QR_WRITE_RETRY_BACKOFF: float = 0.05

    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip().rstrip("/") for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
