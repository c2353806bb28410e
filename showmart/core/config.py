"""
Application configuration and settings
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./showmart.db")

# Redis Configuration
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "600"))  # 10 minutes default
SEAT_HOLD_TTL_MS = int(os.getenv("SEAT_HOLD_TTL_MS", "180000"))  # 3 minutes default
SEAT_HOLD_PREFIX = os.getenv("SEAT_HOLD_PREFIX", "showmart")

# Auth Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# SMTP Configuration
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_DEFAULT_ORIGINS = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()]


# Settings class for callers that prefer attribute access
class Settings:
    PROJECT_NAME: str = "ShowMart API"
    VERSION: str = "1.0.0"
    DATABASE_URL = DATABASE_URL
    REDIS_URL = REDIS_URL
    OTP_TTL_SECONDS = OTP_TTL_SECONDS
    SEAT_HOLD_TTL_MS = SEAT_HOLD_TTL_MS
    SEAT_HOLD_PREFIX = SEAT_HOLD_PREFIX
    ACCESS_TOKEN_EXPIRE_MINUTES = ACCESS_TOKEN_EXPIRE_MINUTES
    CORS_ORIGINS = CORS_ORIGINS
    LOG_LEVEL = LOG_LEVEL

settings = Settings()
