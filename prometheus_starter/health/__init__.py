"""Health indicators and the composite health gauge."""

from prometheus_starter.health.gauge import (
    HEALTH_GAUGE_NAME,
    HealthGaugePublisher,
    status_to_gauge_value,
)
from prometheus_starter.health.indicators import (
    CompositeHealthIndicator,
    FunctionHealthIndicator,
    Health,
    HealthIndicator,
    OrderedHealthAggregator,
    Status,
)

__all__ = [
    "CompositeHealthIndicator",
    "FunctionHealthIndicator",
    "HEALTH_GAUGE_NAME",
    "Health",
    "HealthGaugePublisher",
    "HealthIndicator",
    "OrderedHealthAggregator",
    "Status",
    "status_to_gauge_value",
]
