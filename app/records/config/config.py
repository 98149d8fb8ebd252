import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """
    Holds the application settings read straight from environment variables.
    """
    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", 5))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", 20))
    CREATE_SCHEMA_ON_STARTUP: bool = os.environ.get("CREATE_SCHEMA_ON_STARTUP", "false").lower() == "true"

    # Redis (sessions) and rate limiter storage
    APPLICATION_REDIS_URL: str = os.environ.get("APPLICATION_REDIS_URL")
    RATE_LIMITER_STORAGE_URI: str = os.environ.get("RATE_LIMITER_STORAGE_URI", "memory://")
    RATE_LIMIT_ENABLED: bool = os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true"

    # JWT
    SECRET_KEY: str = os.environ.get("SECRET_KEY")
    ALGORITHM: str = os.environ.get("ALGORITHM", "HS256")

    # Session lifetimes per role
    ADMIN_SESSION_TTL_SECONDS: int = int(os.environ.get("ADMIN_SESSION_TTL_SECONDS", 3600))
    TEACHER_SESSION_TTL_SECONDS: int = int(os.environ.get("TEACHER_SESSION_TTL_SECONDS", 3600))
    STUDENT_SESSION_TTL_SECONDS: int = int(os.environ.get("STUDENT_SESSION_TTL_SECONDS", 900))

    # Used when an admin creates a student without a password
    DEFAULT_STUDENT_PASSWORD: str = os.environ.get("DEFAULT_STUDENT_PASSWORD", "student123")

    CORS_ORIGIN: str = os.environ.get("CORS_ORIGIN", "http://localhost:3000")
    LOG_DIR: str = os.environ.get("LOG_DIR", "logs")

# Single importable settings instance
settings = Config()
