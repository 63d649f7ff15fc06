"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All config comes from env vars or .env file."""

    FILE_STORAGE_PATH: str = "./uploads"
    STATIC_DIR: str = "./static"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 80
    CORS_ORIGINS: str = "*"

    # Uploads
    DEFAULT_EXPIRATION_HOURS: int = 24
    UPLOAD_CHUNK_SIZE: int = 1024 * 1024

    # Expiry sweep
    CLEANUP_INTERVAL_SECONDS: float = 60.0

    # Drop everything when the process starts and stops
    CLEAR_ON_STARTUP: bool = True
    CLEAR_ON_SHUTDOWN: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
