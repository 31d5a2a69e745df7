from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "blogstore"
    DB_PASSWORD: str = "blogstore_password"
    DB_NAME: str = "blogstore_db"
    SQL_ECHO: bool = False

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Bootstrap (schema changes normally go through Alembic)
    CREATE_TABLES_ON_STARTUP: bool = False
    SEED_ON_STARTUP: bool = True
    LOG_LEVEL: str = "INFO"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Token lifetimes
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 48
    PASSWORD_RESET_EXPIRE_HOURS: int = 2
    SUBSCRIPTION_CONFIRM_HOURS: int = 24  # Hours until confirmation link expires

    # Sessions (expiry is enforced by the purge job, not by the schema)
    SESSION_IDLE_MINUTES: int = 60 * 24 * 14

    # Content
    WORDS_PER_MINUTE: int = 200  # Used for reading_time estimates

    # File Storage
    UPLOAD_DIR: str = "./uploads"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB in bytes
    ALLOWED_IMAGE_TYPES: list[str] = ["image/jpeg", "image/png", "image/gif", "image/webp"]
    ALLOWED_DOCUMENT_TYPES: list[str] = ["application/pdf", "text/plain"]

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields in .env file


settings = Settings()
