from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # postgresql://... in production, sqlite+aiosqlite://... for tests
    database_url: str

    # Outbound mail; sending is skipped while EMAIL_HOST is empty
    EMAIL_HOST: str | None = None
    EMAIL_PORT: int = 587
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    EMAIL_FROM: str | None = None

    # JWT
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    DEFAULT_PAGE_SIZE: int = 15
    MAX_PAGE_SIZE: int = 100

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
