"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Storage
    DATABASE_PATH: str = "data/riverdata.db"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Sources
    HTTP_TIMEOUT: float = 30.0
    HIDMET_BULLETIN_URL: str = "https://www.hidmet.gov.rs/ciril/osmotreni/stanje_voda.php"
    HIDMET_SERIES_URL: str = (
        "https://www.hidmet.gov.rs/ciril/osmotreni/nrt_tabela_grafik.php"
        "?hm_id=45902&period=7"
    )
    SERIES_RIVER: str = "ГРАДАЦ"
    SERIES_STATION: str = "ДЕГУРИЋ"
    RHMZRS_LISTING_URL: str = "https://novi.rhmzrs.com/page/bilten-izvjestaj-o-vodostanju"
    RHMZRS_BASE_URL: str = "https://novi.rhmzrs.com"

    # Refresh
    REFRESH_INTERVAL_MINUTES: int = 60
    REFRESH_ON_STARTUP: bool = True
    CACHE_MAX_AGE_SECONDS: int = 3600

    # Natural-language interpreter
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
