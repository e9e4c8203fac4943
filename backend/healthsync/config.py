from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from typing import Optional

DEFAULT_JWT_SECRET = "change-this-secret"


class Settings(BaseSettings):
    """Application settings."""

    # Auth
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET)
    token_expire_seconds: int = Field(default=7 * 24 * 3600)

    # Storage
    database_url: Optional[str] = Field(default=None)
    # "sql" | "memory" | "auto" (sql when DATABASE_URL is set)
    storage_backend: str = Field(default="auto")

    # Realtime
    enable_sockets: bool = Field(default=True)

    # ICD-11 terminology lookup
    icd11_api_url: str = Field(
        default="https://clinicaltables.nlm.nih.gov/api/icd11_codes/v3/search",
    )
    upstream_timeout_seconds: float = Field(default=12.0)

    # Password reset mail (SMTP, STARTTLS); delivery is skipped without credentials
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)
    email_user: Optional[str] = Field(default=None)
    email_password: Optional[str] = Field(default=None)
    email_from: str = Field(default="noreply@healthsync.com")
    password_reset_ttl_seconds: int = Field(default=10 * 60)

    # Comma separated CORS origins
    frontend_urls: str = Field(default="http://localhost:3000,http://localhost:5173")

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origins(self) -> list[str]:
        return [url.strip().rstrip("/") for url in self.frontend_urls.split(",") if url.strip()]

    @property
    def resolved_storage_backend(self) -> str:
        if self.storage_backend == "auto":
            return "sql" if self.database_url else "memory"
        return self.storage_backend


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
