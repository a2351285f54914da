"""
Application settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/receipts.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Uploads
    DATA_DIR: str = "./data"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # OCR (Google Cloud Vision by default; an ocr.space endpoint switches backend)
    OCR_API_KEY: str = ""
    OCR_API_ENDPOINT: str = "https://vision.googleapis.com/v1/images:annotate"
    OCR_TIMEOUT_SECONDS: float = 45.0
    OCR_MAX_ATTEMPTS: int = 2
    OCR_RETRY_DELAY_SECONDS: float = 2.0

    # LLM
    OPENAI_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.1
    LLM_TIMEOUT_SECONDS: float = 60.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
