from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import Field

class ClientSettings(BaseSettings):
    api_url: str = Field("http://localhost:4000")
    timeout: float = Field(10.0)
    session_file: Path = Field(Path.home() / ".paperless" / "session.json")

    class Config:
        env_prefix = "PAPERLESS_"
        env_file = ".env"
        extra = "ignore"
