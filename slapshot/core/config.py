from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Slapshot Snapshot"
    APP_URL: str = "https://snap.pucc.us"

    DATABASE_URL: str = "sqlite:///./slapshot.db"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 14

    # Session cookie
    SESSION_COOKIE_NAME: str = "slapshot_session"
    SESSION_COOKIE_SECURE: bool = False

    # Email settings
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = "noreply@snap.pucc.us"
    SMTP_FROM_NAME: str = "Slapshot Snapshot"
    SUPPORT_EMAIL: str = "support@snap.pucc.us"

    # Uploads
    UPLOAD_ROOT: str = "./uploads"
    MAX_UPLOAD_BYTES: int = 300 * 1024 * 1024
    MAX_LOGO_BYTES: int = 5 * 1024 * 1024

    # Email change approval
    EMAIL_CHANGE_TTL_DAYS: int = 7
    EMAIL_CHANGE_MAX_PER_DAY: int = 5
    EMAIL_CHANGE_MIN_INTERVAL_SECONDS: int = 30

    # Invite emails
    INVITE_EMAIL_MAX_PER_HOUR: int = 20
    INVITE_EMAIL_MIN_INTERVAL_SECONDS: int = 10

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
