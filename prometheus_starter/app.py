"""Flask application factory."""

from collections.abc import Sequence

from dependency_injector import providers
from flask import Flask

from prometheus_starter.config import Settings
from prometheus_starter.container import StarterContainer
from prometheus_starter.health.indicators import HealthIndicator


class App(Flask):
    """Flask application with typed container attribute."""

    container: StarterContainer


def create_app(
    settings: Settings | None = None,
    health_indicators: Sequence[HealthIndicator] | None = None,
    container_class: type[StarterContainer] = StarterContainer,
) -> App:
    """Create and configure the Flask application.

    Args:
        settings: Optional settings instance (loaded from environment if not provided)
        health_indicators: Indicators feeding the composite health gauge
        container_class: The container class to use (app's extended container)

    Returns:
        Configured Flask application instance
    """
    app = App(__name__)

    if settings is None:
        settings = Settings.load()
    settings.validate_config()

    container = container_class()
    container.config.override(settings)
    if health_indicators is not None:
        container.health_indicators.override(providers.Object(list(health_indicators)))

    container.wire(modules=["prometheus_starter.actuator.routes"])
    app.container = container

    # Resolve tags and publish the health gauge before serving requests
    configuration = container.metrics_configuration()
    app.logger.info(f"Metrics configured with tags {dict(configuration.tags)}")

    from prometheus_starter.actuator import actuator_bp
    app.register_blueprint(actuator_bp)

    return app
