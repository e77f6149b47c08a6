# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_cart.db"

    FRONTEND_URL: str = "http://localhost:5173"

    # Pricing rules applied when totals are computed
    FREE_SHIPPING_THRESHOLD: float = 150.0
    SHIPPING_FLAT_FEE: float = 15.0

    # Header carrying the anonymous cart identity
    SESSION_HEADER: str = "X-Session-Id"

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
