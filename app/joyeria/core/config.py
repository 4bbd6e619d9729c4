from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "Joyeria POS"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    DATABASE_URL: str = "sqlite+pysqlite:///./joyeria.db"
    STORE_TIMEZONE: str = "America/Costa_Rica"
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "change-me"
    ADMIN_FULL_NAME: str = "Administrador"
    LIST_DEFAULT_PAGE_SIZE: int = 50
    LIST_MAX_PAGE_SIZE: int = 200
    METRICS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"

settings = Settings()
