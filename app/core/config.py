# app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    APP_NAME: str = "Room Inquiry API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # DB
    DATABASE_URL: str = Field(default="sqlite:///./inquiries.db")  # e.g. mysql+pymysql://...

    # Auth / security
    SECRET_KEY: str = "change-me"
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Email (Brevo)
    BREVO_API_KEY: str | None = None
    MAIL_FROM_EMAIL: str = "no-reply@example.com"
    MAIL_FROM_NAME: str = "Room Inquiries"
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    # Uploaded identity documents
    MEDIA_ROOT: str = "media"
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024  # 2 MB

    # Listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Soft delete keeps the document unless this is switched on
    DELETE_BLOB_ON_SOFT_DELETE: bool = False

    # Roles allowed per gated action
    DELETE_ROLES: set[str] = {"admin", "seller"}
    RESTORE_ROLES: set[str] = {"admin", "users"}
    APPROVE_ROLES: set[str] = {"admin", "seller"}
    PURGE_ROLES: set[str] = {"admin"}
    EDIT_ROLES: set[str] = {"admin", "seller"}
    VIEW_DOCUMENT_ROLES: set[str] = {"admin", "seller"}

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,  # allow DATABASE_URL or database_url, etc.
        extra="ignore",
    )


settings = Settings()
