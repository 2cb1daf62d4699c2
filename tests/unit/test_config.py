"""Unit tests for configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from db_viewer.infrastructure.config import Config, ExportConfig, SyncConfig, ViewConfig, get_config


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = Config()

        assert config.sync.save_timeout_seconds == 6.0
        assert config.sync.status_clear_seconds == 4.0
        assert config.view.default_page_size == 50
        assert config.export.default_format == "CSV"
        assert config.server.port == 8000
        assert config.server.metrics_port == 8001
        assert config.observability.log_format == "json"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Nested settings are read from DB_VIEWER_ variables."""
        monkeypatch.setenv("DB_VIEWER_SYNC__SAVE_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("DB_VIEWER_VIEW__DEFAULT_PAGE_SIZE", "25")

        config = Config()

        assert config.sync.save_timeout_seconds == 2.5
        assert config.view.default_page_size == 25

    def test_ensure_directories(self, temp_dir: Path) -> None:
        """Test that ensure_directories creates the export directory."""
        config = Config(export=ExportConfig(output_dir=temp_dir / "out" / "exports"))

        config.ensure_directories()

        assert config.export.output_dir.is_dir()

    def test_invalid_values(self) -> None:
        """Out-of-range values raise validation errors."""
        with pytest.raises(ValidationError):
            ViewConfig(default_page_size=0)
        with pytest.raises(ValidationError):
            SyncConfig(save_timeout_seconds=0)

    def test_unknown_export_format_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExportConfig(default_format="XML")  # type: ignore[arg-type]


@pytest.mark.unit
class TestConfigSingleton:
    """Tests for get_config singleton."""

    def test_get_config_returns_same_instance(self) -> None:
        """Test that get_config returns the same instance."""
        assert get_config() is get_config()
