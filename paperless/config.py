from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    app_name: str = "Paperless System API"
    app_version: str = "1.0.0"
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("change-me-in-production", alias="SECRET_KEY")
    access_token_expire_minutes: int = Field(24 * 60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_connect_retries: int = Field(5, alias="DB_CONNECT_RETRIES")
    db_connect_backoff_seconds: float = Field(5.0, alias="DB_CONNECT_BACKOFF_SECONDS")

    upload_dir: str = Field("uploads", alias="UPLOAD_DIR")
    max_upload_bytes: int = Field(10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    public_uploads: bool = Field(False, alias="PUBLIC_UPLOADS")
    server_url: str = Field("http://localhost:4000", alias="SERVER_URL")
    client_url: str = Field("http://localhost:3000", alias="CLIENT_URL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    rate_limit_window_seconds: int = Field(60, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_calls: int = Field(30, alias="RATE_LIMIT_MAX_CALLS")

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"prod", "production"}

settings = Settings()
