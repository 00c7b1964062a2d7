import os
from functools import lru_cache
from pathlib import Path


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./social_chat.db")

    # Secret key (in production, use a secure long string)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecret")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # avatar paths stored on users are relative to this directory
    MEDIA_ROOT: Path = Path(os.getenv("MEDIA_ROOT", os.getcwd()))
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads/profilepictures")

    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",")
        if origin.strip()
    ]

    GLOBAL_CHAT_ID: str = os.getenv("GLOBAL_CHAT_ID", "global")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str | None = os.getenv("LOG_FILE")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
