"""Runtime configuration for storage and snapshot refresh."""

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """Where records are stored and how hard to try reaching the store at startup."""

    path: str = ":memory:"
    connect_retries: int = Field(ge=1, default=3)
    connect_retry_delay_seconds: float = Field(ge=0, default=2.0)


class RefreshConfig(BaseModel):
    """Configuration for the background snapshot refresher."""

    interval_seconds: int = Field(ge=1, default=30)
    recent_window_hours: int = Field(ge=0, default=24)   # 0 = no time filtering


class FacilityConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    refresh: RefreshConfig = RefreshConfig()
