import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))  # 24 hours default

    DATABASE_URL: str | None = os.getenv("DATABASE_URL")
    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASS: str | None = os.getenv("DB_PASS")
    DB_HOST: str | None = os.getenv("DB_HOST")
    DB_PORT: str | None = os.getenv("DB_PORT", "5432")
    DB_NAME: str | None = os.getenv("DB_NAME")

    # Public base url, joined with artifact refs at read time
    APP_URL: str = os.getenv("APP_URL", "http://localhost:5000")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/v1")

    # Barcode artifacts
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", os.path.join(BASE_DIR, "uploads"))
    BARCODE_LOGO_PATH: str | None = os.getenv("BARCODE_LOGO_PATH")
    BARCODE_IMAGE_SIZE: int = int(os.getenv("BARCODE_IMAGE_SIZE", 250))
    BARCODE_MAX_RETRIES: int = int(os.getenv("BARCODE_MAX_RETRIES", 5))
    BARCODE_INSERT_ATTEMPTS: int = int(os.getenv("BARCODE_INSERT_ATTEMPTS", 3))
    TEMP_CLEANUP_DELAY_SECONDS: float = float(
        os.getenv("TEMP_CLEANUP_DELAY_SECONDS", 1.0))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list[str] = [
        "http://localhost:8080",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def barcode_dir(self) -> str:
        return os.path.join(self.UPLOAD_DIR, "barcodes")

    @property
    def temp_dir(self) -> str:
        return os.path.join(self.UPLOAD_DIR, "temp")

    @property
    def logo_path(self) -> str:
        return self.BARCODE_LOGO_PATH or os.path.join(self.UPLOAD_DIR, "logo.png")


settings = Settings()

DATABASE_URL = settings.DATABASE_URL or (
    f"postgresql+asyncpg://{settings.DB_USER}:{settings.DB_PASS}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}"
)
