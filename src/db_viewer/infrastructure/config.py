"""Configuration management for the database viewer."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


ExportFormatName = Literal[
    "Excel",
    "CSV",
    "TSV",
    "SQLite Insert",
    "JSON Object",
    "JSON Array",
    "HTML",
    "Markdown",
]


class SyncConfig(BaseModel):
    """Save round-trip configuration."""

    save_timeout_seconds: float = Field(
        default=6.0, gt=0, description="Seconds to wait for a save acknowledgment"
    )
    status_clear_seconds: float = Field(
        default=4.0, gt=0, description="Seconds a transient status message stays visible"
    )


class ViewConfig(BaseModel):
    """Table view configuration."""

    default_page_size: int = Field(default=50, ge=1, le=100000, description="Rows per page")


class ExportConfig(BaseModel):
    """Export configuration."""

    default_format: ExportFormatName = Field(default="CSV", description="Initial export format")
    output_dir: Path = Field(
        default=Path("."), description="Directory for exports when no document owner is attached"
    )


class ServerConfig(BaseModel):
    """HTTP surface configuration."""

    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="db_viewer", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the database viewer."""

    model_config = SettingsConfigDict(
        env_prefix="DB_VIEWER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    sync: SyncConfig = Field(default_factory=SyncConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def ensure_directories(self) -> None:
        """Ensure the local export directory exists."""
        self.export.output_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
