from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "PBOM Webhook"

    # Required credentials
    PBOM_WEBHOOK_SECRET: str
    GITHUB_TOKEN: str

    # Server
    PBOM_WEBHOOK_HOST: str = "0.0.0.0"
    PBOM_WEBHOOK_PORT: int = 8080
    MAX_BODY_BYTES: int = 10 * 1024 * 1024
    SHUTDOWN_GRACE_SECONDS: float = 10.0
    LOG_LEVEL: str = "INFO"

    # Storage
    PBOM_STORAGE_DIR: str = "./pbom-data"

    # GitHub API
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_API_TIMEOUT_SECONDS: float = 30.0

    # Enrichment
    COLLECTOR_WORKFLOW_NAME: str = "PBOM Collector"
    SKELETON_DEADLINE_SECONDS: float = 120.0
    ENRICHMENT_TIMEOUT_SECONDS: float = 300.0

    @field_validator("PBOM_WEBHOOK_SECRET", "GITHUB_TOKEN")
    @classmethod
    def _require_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
