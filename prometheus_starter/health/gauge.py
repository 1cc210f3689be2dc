"""Composite health published as a Prometheus gauge.

The gauge value is re-evaluated on every scrape:

    3 = UP, 2 = OUT_OF_SERVICE, 1 = DOWN, 0 = UNKNOWN or anything else
"""

import logging
from collections.abc import Mapping, Sequence

from prometheus_starter.health.indicators import (
    CompositeHealthIndicator,
    HealthIndicator,
    OrderedHealthAggregator,
    Status,
)
from prometheus_starter.metrics.registry import FunctionGauge, MeterRegistry
from prometheus_starter.tags import TAG_ADDRESS, TAG_APPLICATION, TAG_ENV, TAG_PORT

logger = logging.getLogger(__name__)

HEALTH_GAUGE_NAME = "health"

_GAUGE_TAGS = (TAG_APPLICATION, TAG_ADDRESS, TAG_PORT, TAG_ENV)

_STATUS_RANKS = {
    Status.UP.value: 3,
    Status.OUT_OF_SERVICE.value: 2,
    Status.DOWN.value: 1,
}


def status_to_gauge_value(status: Status | str) -> int:
    code = status.value if isinstance(status, Status) else status
    return _STATUS_RANKS.get(code, 0)


def _composite_gauge_value(indicator: CompositeHealthIndicator) -> int:
    return status_to_gauge_value(indicator.health().code)


class HealthGaugePublisher:
    """Builds the composite indicator and registers the ``health`` gauge."""

    def __init__(
        self,
        registry: MeterRegistry,
        aggregator: OrderedHealthAggregator,
        indicators: Sequence[HealthIndicator],
    ) -> None:
        self.registry = registry
        # Indicators are keyed by their position in the list
        self.composite = CompositeHealthIndicator(
            aggregator,
            {str(index): indicator for index, indicator in enumerate(indicators)},
        )

    def publish(self, tags: Mapping[str, str]) -> FunctionGauge:
        gauge_tags = {key: tags.get(key, "") for key in _GAUGE_TAGS}
        gauge = self.registry.gauge(
            HEALTH_GAUGE_NAME,
            gauge_tags,
            self.composite,
            _composite_gauge_value,
            description="Composite health status (3=UP, 2=OUT_OF_SERVICE, 1=DOWN, 0=UNKNOWN)",
        )
        logger.info(
            "Published health gauge",
            extra={"indicators": len(self.composite.indicators)},
        )
        return gauge
