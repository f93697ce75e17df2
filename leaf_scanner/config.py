# leaf_scanner/config.py
import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

# Bitmaps are downsized to at most this size before the pixel scan
MAX_ANALYSIS_WIDTH = 800
MAX_ANALYSIS_HEIGHT = 600


class Settings(BaseSettings):
    """Application configuration based on environment variables"""

    # API configuration
    API_PREFIX: str = "/api"

    # CORS configuration (Frontend URLs)
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",  # Vite dev server
        "http://localhost:8080",
    ]

    # Record store for completed scans
    DATABASE_URL: str = "sqlite:///./leaf_scanner.db"

    # Debug mode
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = "INFO"

    # Maximum file size for uploads (in bytes)
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10 MB

    # Local capture device used by /scan/camera
    CAMERA_INDEX: int = 0

    # Number of scans returned by the recent-scans endpoint
    RECENT_SCANS_LIMIT: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Return settings with caching"""
    return Settings()
