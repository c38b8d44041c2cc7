"""Pension Simulator Flask Application Factory."""

import logging
from typing import TYPE_CHECKING, Optional

from flask import Flask

if TYPE_CHECKING:
    from pension_simulator.config import Settings

__version__ = "0.1.0"


def create_app(settings: Optional["Settings"] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Application settings (global settings when omitted)

    Returns:
        Flask: Configured Flask application instance
    """
    from pension_simulator.config import get_global_settings
    from pension_simulator.services.calculation_service import create_orchestrator
    from pension_simulator.services.result_cache import ResultCache
    from pension_simulator.storage.factory import create_storage_service

    app = Flask(__name__)

    # Configuration from Pydantic Settings
    settings = settings or get_global_settings()
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["DEBUG"] = settings.app_env == "development"
    app.config["TESTING"] = settings.app_env == "testing"
    app.config["CALCULATION_TIMEOUT_SECONDS"] = settings.calculation_timeout_seconds

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("pension_simulator").setLevel(settings.log_level)
    app.logger.setLevel(settings.log_level)

    app.extensions["calculation_orchestrator"] = create_orchestrator(settings)
    app.extensions["result_cache"] = (
        ResultCache(create_storage_service(settings))
        if settings.result_cache_enabled
        else None
    )

    # Register blueprints
    from pension_simulator.blueprints.calculations import calculations_bp
    from pension_simulator.blueprints.health import health_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(calculations_bp)

    return app
