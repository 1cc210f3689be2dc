"""Prometheus metrics module.

Metrics registered through a MeterRegistry carry its common tags:

    registry = container.meter_registry()
    gauge = registry.gauge("queue_depth", {}, queue, len)

All metrics are included in the /actuator/prometheus endpoint output.
"""

from prometheus_starter.metrics.customizer import CommonTagsCustomizer
from prometheus_starter.metrics.registry import FunctionGauge, MeterRegistry
from prometheus_starter.metrics.timed import TimedAspect

__all__ = [
    "CommonTagsCustomizer",
    "FunctionGauge",
    "MeterRegistry",
    "TimedAspect",
]
