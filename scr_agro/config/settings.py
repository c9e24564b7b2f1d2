"""
SCR Agro Farms Admin Analytics
Configuration

Every section reads its own environment prefix (POSTGRES_, REDIS_,
REALTIME_, REPORTING_); application-level values use bare names such as
APP_ENV and LOG_LEVEL. A local .env file is honoured.
"""

from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"

ENVIRONMENTS = ("development", "staging", "production", "testing")


def section_config(env_prefix: str) -> SettingsConfigDict:
    # Sections are built through default_factory, so each reads .env itself
    return SettingsConfigDict(
        env_prefix=env_prefix,
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )


class DatabaseSettings(BaseSettings):
    """Backend Postgres (orders, products, stock_movements, profiles)"""

    model_config = section_config("POSTGRES_")

    host: str = Field(default="localhost")
    port: int = Field(default=5432)
    db: str = Field(default="postgres", alias="POSTGRES_DB", description="Database name")
    user: str = Field(default="postgres")
    password: SecretStr = Field(default="postgres")
    echo: bool = Field(default=False, description="Log emitted SQL")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="SQLAlchemy URL, wins over the parts above")

    @property
    def async_url(self) -> str:
        if self.url:
            return self.url
        secret = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{secret}@{self.host}:{self.port}/{self.db}"

    @property
    def listen_dsn(self) -> str:
        """libpq-style DSN for the raw asyncpg LISTEN connection"""
        return self.async_url.replace("postgresql+asyncpg://", "postgresql://", 1)


class RedisSettings(BaseSettings):
    """Redis holding cached dashboard values"""

    model_config = section_config("REDIS_")

    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    password: Optional[SecretStr] = Field(default=None)
    db: int = Field(default=0, description="Logical database number")
    max_connections: int = Field(default=50)
    socket_timeout: int = Field(default=5, description="Seconds")
    decode_responses: bool = Field(default=True)
    url: Optional[str] = Field(default=None, alias="REDIS_URL", description="Wins over host/port when set")

    def get_url(self) -> str:
        if self.url:
            return self.url
        auth = f":{self.password.get_secret_value()}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class RealtimeSettings(BaseSettings):
    """Postgres NOTIFY feed that refreshes cached values"""

    model_config = section_config("REALTIME_")

    enabled: bool = Field(default=True)
    channel: str = Field(default="table_changes", description="NOTIFY channel the triggers publish on")
    tables: List[str] = Field(
        default=["orders", "products", "stock_movements", "profiles"],
        description="Tables whose changes invalidate dashboard values",
    )
    reconnect_delay_seconds: float = Field(default=5.0, gt=0, description="Pause before re-opening a dropped listener")


class ReportingSettings(BaseSettings):
    """Sales report windows, status sets and dashboard limits"""

    model_config = section_config("REPORTING_")

    timezone: str = Field(default="UTC", description="Zone whose calendar buckets the timestamps")
    monthly_window: int = Field(default=4, ge=1, description="Months in the monthly trend, current month included")
    yearly_window: int = Field(default=3, ge=1, description="Years in the yearly trend, current year included")
    default_min_stock_level: int = Field(default=10, description="Low-stock threshold for products without one")

    # Delivered and revenue sets overlap only on "delivered"
    delivered_statuses: List[str] = Field(default=["completed", "delivered"])
    revenue_statuses: List[str] = Field(default=["paid", "shipped", "delivered"])
    pending_statuses: List[str] = Field(default=["pending", "pending_payment", "processing"])

    dashboard_alert_limit: int = Field(default=6, ge=0, description="Low-stock alerts on the dashboard home")
    recent_customer_days: int = Field(default=7, ge=1)
    cache_ttl_seconds: int = Field(default=300, ge=1, description="Upper bound on staleness of cached values")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


class SecuritySettings(BaseSettings):
    model_config = section_config("")

    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Origins of the admin dashboard front end",
    )


class MonitoringSettings(BaseSettings):
    model_config = section_config("")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="json or console")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be json or console")
        return v.lower()


class Settings(BaseSettings):
    """Top-level settings; one instance per process via get_settings()"""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="scr-agro-admin", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    version: str = Field(default="1.0.0")

    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        if v.lower() not in ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {list(ENVIRONMENTS)}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """Load settings once; tests build Settings() directly instead"""
    return Settings()
