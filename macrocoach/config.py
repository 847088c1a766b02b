# macrocoach/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API / Server
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8090
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./macrocoach.db"

    # Auth / JWT
    JWT_SECRET: str = "dev_fallback_secret_change_me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Estimation oracle (OpenAI-compatible chat completions endpoint)
    ESTIMATION_API_URL: str | None = None
    ESTIMATION_API_KEY: str | None = None
    ESTIMATION_MODEL: str = "gpt-4o-mini"
    ESTIMATION_TIMEOUT_S: float = 20.0
    ESTIMATION_TEMPERATURE: float = 0.3

    # Nutrition
    REGENERATION_THRESHOLD_KG: float = 3.0


settings = Settings()
