"""Tests for Flask application startup with configuration."""

import os
from unittest.mock import patch

import pytest

from finplan import create_app
from finplan.config import Settings, reset_global_settings
from finplan.services.projection_service import RetirementProjectionService
from finplan.storage import InMemoryRepository, SqlAlchemyRepository


class TestAppStartup:
    """Test cases for Flask application startup."""

    def test_app_creation_with_settings(self, settings):
        """Test that app creates successfully with explicit settings."""
        app = create_app(settings)

        assert app.config["SECRET_KEY"] == "test-secret-key-123"
        assert app.config["STORAGE_TYPE"] == "memory"
        assert app.config["TESTING"] is True
        assert app.config["DEBUG"] is False
        assert isinstance(app.extensions["planner_repository"], InMemoryRepository)
        assert isinstance(
            app.extensions["projection_service"], RetirementProjectionService
        )

    def test_app_uses_given_repository(self, settings, sql_repository):
        """Test that a repository passed in is wired into the service."""
        app = create_app(settings, repository=sql_repository)

        service = app.extensions["projection_service"]
        assert service.repository is sql_repository
        assert service.settings is settings

    def test_app_creation_from_environment(self):
        """Test that app reads global settings from the environment."""
        reset_global_settings()

        with patch.dict(
            os.environ,
            {
                "SECRET_KEY": "custom-secret-key",
                "APP_ENV": "production",
                "DB_URL": "sqlite://",
                "LOG_LEVEL": "ERROR",
            },
            clear=True,
        ):
            app = create_app()

            assert app.config["SECRET_KEY"] == "custom-secret-key"
            assert app.config["DATABASE_URL"] == "sqlite://"
            assert app.config["DEBUG"] is False
            assert isinstance(app.extensions["planner_repository"], SqlAlchemyRepository)

    def test_app_creation_fails_with_placeholder_secret_key(self):
        """Test that app creation fails with placeholder SECRET_KEY."""
        reset_global_settings()

        with patch.dict(
            os.environ,
            {"SECRET_KEY": "your-secret-key-here-change-in-production"},
            clear=True,
        ):
            with pytest.raises(Exception) as exc_info:
                create_app()

            assert "SECRET_KEY must be set to a secure value" in str(exc_info.value)

    def test_app_debug_mode_based_on_environment(self):
        """Test that debug mode is set based on APP_ENV."""
        for app_env, debug in [("development", True), ("production", False)]:
            settings = Settings(
                _env_file=None,
                SECRET_KEY="valid-secret-key-123",
                APP_ENV=app_env,
                STORAGE_TYPE="memory",
            )
            assert create_app(settings).config["DEBUG"] is debug
