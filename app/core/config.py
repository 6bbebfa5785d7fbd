from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_MINUTES: int = 30
    REFRESH_TOKEN_DAYS: int = 7

    LOG_LEVEL: str = "INFO"
    # balance computations slower than this get a warning from the logging recorder
    SLOW_BALANCE_MS: float = 500.0

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()
