from pydantic_settings import BaseSettings
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = os.getenv("APP_NAME", "Zync")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:4200")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # MongoDB Settings
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "zync_db")

    # JWT Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your_secret_key_here")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:4200",  # Angular/Vite frontend
        "http://localhost:3000",
    ]

    # Uploads (avatars)
    UPLOADS_DIR: str = os.getenv("UPLOADS_DIR", "./uploads")
    AVATAR_MAX_BYTES: int = int(os.getenv("AVATAR_MAX_BYTES", str(5 * 1024 * 1024)))

    # Booking policy
    CANCELLATION_CUTOFF_HOURS: int = int(os.getenv("CANCELLATION_CUTOFF_HOURS", "24"))
    MAX_GENERATION_DAYS: int = int(os.getenv("MAX_GENERATION_DAYS", "366"))
    BOOKING_REFERENCE_ATTEMPTS: int = int(os.getenv("BOOKING_REFERENCE_ATTEMPTS", "5"))

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
