from pydantic_settings import BaseSettings
from pydantic import ConfigDict

class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", extra="ignore")

    ENV: str = "development"

    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_POOL_RECYCLE: int = 3600

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]
    RATE_LIMIT_DEFAULT: str = "200/hour"

    # Orders
    IDEMPOTENCY_WINDOW_MINUTES: int = 60 * 24

    # Used when a phone number is given without a country code
    DEFAULT_PHONE_REGION: str = "VN"


settings = Settings()
