"""Instance tags and a composite health gauge for Prometheus."""

from prometheus_starter.app import create_app
from prometheus_starter.configuration import MetricsConfiguration, configure_metrics

__all__ = [
    "MetricsConfiguration",
    "configure_metrics",
    "create_app",
]
