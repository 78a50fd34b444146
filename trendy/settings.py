from pydantic_settings import BaseSettings, SettingsConfigDict

from .providers.markit import MARKIT_CHART_URL

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TRENDY_", extra="ignore")
    database_url: str = "sqlite:///./trendy.db"
    markit_url: str = MARKIT_CHART_URL
    request_timeout: float = 30.0  # seconds, per remote call
    log_level: str = "INFO"
    log_file: str | None = None

settings = Settings()
