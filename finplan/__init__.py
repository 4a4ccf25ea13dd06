"""Financial Planner Flask Application Factory."""

from typing import Optional

from flask import Flask

from finplan.config import Settings, get_global_settings
from finplan.logging_config import configure_logging
from finplan.services.projection_service import RetirementProjectionService
from finplan.storage import PlannerRepository, create_repository


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[PlannerRepository] = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Settings to use instead of the global settings
        repository: Record store to use instead of one built from settings

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Configuration from Pydantic Settings
    settings = settings or get_global_settings()
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["DATABASE_URL"] = settings.db_url
    app.config["STORAGE_TYPE"] = settings.storage_type
    app.config["ENV"] = settings.flask_env
    app.config["DEBUG"] = settings.app_env == "development"
    app.config["TESTING"] = settings.app_env == "testing"

    configure_logging(settings.log_level)

    repository = repository or create_repository(settings)
    app.extensions["planner_repository"] = repository
    app.extensions["projection_service"] = RetirementProjectionService(
        repository, settings
    )

    # Register blueprints
    from finplan.blueprints.health import health_bp

    app.register_blueprint(health_bp)

    return app
