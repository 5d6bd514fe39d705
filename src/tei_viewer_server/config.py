from typing import Optional

from pydantic import AnyHttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    storage_api_base_url: AnyHttpUrl = "http://localhost:9199/storage/v1/"

    # Identity tokens issued by the auth provider to the viewer frontend
    auth_jwt_secret: Optional[SecretStr] = None
    auth_jwt_issuer: str = "tei-viewer-auth"
    auth_jwt_audience: str = "tei-viewer-server"

    # Short-lived service tokens sent to the storage backend
    storage_jwt_secret: Optional[SecretStr] = None

    jwt_algo: str = "HS256"
    jwt_ttl_seconds: int = 30

    fetch_timeout_seconds: float = 15.0
    max_document_bytes: int = 10_000_000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
