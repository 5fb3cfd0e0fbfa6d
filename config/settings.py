from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	# Rate source: 'quotes' hits the quote service, 'static' serves STATIC_RATES
	RATE_PROVIDER: str = 'quotes'
	QUOTE_SERVICE_URL: str = 'http://download.finance.yahoo.com/d/quotes.csv'
	QUOTE_TIMEOUT_SECONDS: float = 10.0
	QUOTE_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
	STATIC_RATES: dict[str, float] = {}

	# Rate cache
	RATE_REFRESH_INTERVAL_SECONDS: int = Field(default=3600, gt=0)
	RATE_FETCH_WORKERS: int = Field(default=8, ge=1)

	# Logging
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False
	LOG_FILE: str | None = None

	# Application
	APP_NAME: str = 'Anchored Currency API'
	DEBUG: bool = False

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
