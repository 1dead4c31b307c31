# mock_tools/config.py
# Configuration settings for the mock tools CLI using Pydantic BaseSettings.


###### IMPORT TOOLS ######
# global imports
import os
import pathlib as pl
from functools import lru_cache
from pydantic import field_validator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


###### BASEDIR ######
PROJECT_ROOT = pl.Path(__file__).resolve().parent.parent
BASE_DIR = str(PROJECT_ROOT)


###### SETTINGS ######
class Settings(BaseSettings):
    """Application configuration settings."""
    # app
    APP_ENV: str = Field("dev", pattern="^(dev|prod|test)$")
    # debug
    DEBUG: bool = False
    LOG_DIR: str = os.path.join(BASE_DIR, "mock_tools", "logs")
    LOG_FILE: str = os.path.join(BASE_DIR, "mock_tools", "logs", "app.log")
    # posthog
    POSTHOG_API_KEY: str | None = None
    POSTHOG_HOST: str = "https://us.i.posthog.com"
    # data warehouse
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: str = "3306"
    MYSQL_USER: str = ""
    MYSQL_PASSWORD: str = ""
    MYSQL_DATABASE: str = ""
    WAREHOUSE_DB_URL: str = ""
    # generation windows
    DEFAULT_LOOKBACK_DAYS: int = 14
    WAREHOUSE_LOOKBACK_DAYS: int = 10
    INITIAL_EVENTS_HOURS_AGO: int = 12
    INITIAL_VARIANT_HOURS_AGO: int = 24


    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("POSTHOG_HOST", mode="before")
    @classmethod
    def strip_posthog_host(cls, v):
        """Drop surrounding whitespace and trailing slashes from the host."""
        if v is None or v == "":
            return "https://us.i.posthog.com"
        return str(v).strip().rstrip("/")

    @property
    def warehouse_db_url(self) -> str:
        """Full async URL of the data warehouse, built from MYSQL_* unless overridden."""
        if self.WAREHOUSE_DB_URL:
            return self.WAREHOUSE_DB_URL
        url = URL.create(
            "mysql+aiomysql",
            username=self.MYSQL_USER or None,
            password=self.MYSQL_PASSWORD or None,
            host=self.MYSQL_HOST,
            port=int(self.MYSQL_PORT),
            database=self.MYSQL_DATABASE or None,
        )
        return url.render_as_string(hide_password=False)


# Create settings instance
@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    env = os.getenv("APP_ENV", "dev")
    env_files = (PROJECT_ROOT / ".env", PROJECT_ROOT / f".env.{env}")
    return Settings(_env_file=env_files)
