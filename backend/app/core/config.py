from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # Summary tokens
    SUMMARY_SECRET: str = ""
    SUMMARY_MAX_AGE_MINUTES: Optional[int] = None  # None keeps tokens valid forever
    SUMMARY_STORE_TTL_SECONDS: int = 60 * 60 * 24 * 30  # 30 days

    # Supabase JWT verification
    SUPABASE_JWT_SECRET: str = ""
    JWT_AUDIENCE: str = "authenticated"
    ALGORITHM: str = "HS256"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # Environment
    ENVIRONMENT: str = "development"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()