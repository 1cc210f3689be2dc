"""Meter registry on top of a Prometheus collector registry.

prometheus_client has no notion of labels shared by every metric, so the
registry merges its common tags into each sample when collected. Pass the
MeterRegistry itself to ``generate_latest()`` to render labelled output:

    registry = MeterRegistry()
    registry.add_common_tag("application", "orders")
    text = generate_latest(registry)
"""

import copy
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeVar

from prometheus_client import CollectorRegistry, Histogram
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")


class FunctionGauge:
    """Gauge whose value is computed from ``obj`` on every collect."""

    def __init__(
        self,
        name: str,
        description: str,
        tags: Mapping[str, str],
        obj: T,
        value_function: Callable[[T], float],
    ) -> None:
        self.name = name
        self.description = description
        self.tags = dict(tags)
        self.obj = obj
        self.value_function = value_function

    def value(self) -> float:
        """Current value, or NaN when the value function fails."""
        try:
            return float(self.value_function(self.obj))
        except Exception as e:
            logger.warning(f"Failed to read gauge {self.name}: {e}")
            return float("nan")

    def describe(self) -> list[Metric]:
        return [GaugeMetricFamily(self.name, self.description, labels=list(self.tags))]

    def collect(self) -> Iterator[Metric]:
        family = GaugeMetricFamily(self.name, self.description, labels=list(self.tags))
        family.add_metric(list(self.tags.values()), self.value())
        yield family


class MeterRegistry:
    """Registry handle with common tags and applied customizers."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self._common_tags: dict[str, str] = {}
        self._gauges: dict[str, FunctionGauge] = {}
        self._customizers: list[Callable[["MeterRegistry"], None]] = []

    @property
    def common_tags(self) -> Mapping[str, str]:
        return MappingProxyType(self._common_tags)

    def add_common_tag(self, key: str, value: str) -> None:
        self._common_tags[key] = value

    def gauge(
        self,
        name: str,
        tags: Mapping[str, str],
        obj: T,
        value_function: Callable[[T], float],
        description: str = "",
    ) -> FunctionGauge:
        """Register a gauge reporting ``value_function(obj)``.

        Raises:
            ValueError: If a metric with this name is already registered
        """
        gauge = FunctionGauge(name, description or name, tags, obj, value_function)
        self.registry.register(gauge)
        self._gauges[name] = gauge
        logger.debug("Registered gauge", extra={"gauge": name, "tags": dict(tags)})
        return gauge

    def find_gauge(self, name: str) -> FunctionGauge | None:
        return self._gauges.get(name)

    def histogram(
        self, name: str, description: str, label_names: Sequence[str]
    ) -> Histogram:
        return Histogram(name, description, list(label_names), registry=self.registry)

    def customize(self, customizer: Callable[["MeterRegistry"], None]) -> None:
        customizer(self)
        self._customizers.append(customizer)

    def find_customizer(self, kind: type[C]) -> C | None:
        for customizer in self._customizers:
            if isinstance(customizer, kind):
                return customizer
        return None

    def metric_names(self) -> list[str]:
        return sorted({metric.name for metric in self.registry.collect()})

    def collect(self) -> Iterator[Metric]:
        for metric in self.registry.collect():
            if not self._common_tags:
                yield metric
                continue

            tagged = copy.copy(metric)
            tagged.samples = [
                sample._replace(labels=self._with_common_tags(sample.labels))
                for sample in metric.samples
            ]
            yield tagged

    def _with_common_tags(self, labels: Mapping[str, Any]) -> dict[str, Any]:
        # A metric's own label wins over a common tag of the same name
        return {**self._common_tags, **labels}
