"""Composition root wiring instance tags and the health gauge into a registry."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from prometheus_starter.bootstrap import apply_defaults
from prometheus_starter.config import PropertyResolver
from prometheus_starter.health.gauge import HEALTH_GAUGE_NAME, HealthGaugePublisher
from prometheus_starter.health.indicators import (
    CompositeHealthIndicator,
    HealthIndicator,
    OrderedHealthAggregator,
)
from prometheus_starter.metrics.customizer import CommonTagsCustomizer
from prometheus_starter.metrics.registry import FunctionGauge, MeterRegistry
from prometheus_starter.tags import TagResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricsConfiguration:
    """What configure_metrics() registered."""

    tags: Mapping[str, str]
    composite: CompositeHealthIndicator | None
    gauge: FunctionGauge | None
    customizer: CommonTagsCustomizer


def configure_metrics(
    registry: MeterRegistry,
    aggregator: OrderedHealthAggregator,
    indicators: Sequence[HealthIndicator],
    properties: PropertyResolver,
    tag_resolver: TagResolver | None = None,
) -> MetricsConfiguration:
    """Label the registry with instance tags and publish the health gauge.

    Runs once per registry: when a CommonTagsCustomizer was already applied
    the existing configuration is returned and nothing is registered again.

    Args:
        registry: Registry receiving the gauge and common tags
        aggregator: Policy combining the indicators' statuses
        indicators: All health indicators of the hosting application
        properties: Property lookup for tags and management defaults
        tag_resolver: Resolver to use (built from ``properties`` if omitted)

    Returns:
        The resolved tags, composite indicator, gauge and customizer
    """
    existing = registry.find_customizer(CommonTagsCustomizer)
    if existing is not None:
        logger.debug("Metrics already configured for registry, skipping")
        gauge = registry.find_gauge(HEALTH_GAUGE_NAME)
        return MetricsConfiguration(
            tags=existing.tags,
            composite=gauge.obj if gauge is not None else None,
            gauge=gauge,
            customizer=existing,
        )

    logger.debug("Configuring instance tags and health gauge")
    apply_defaults(properties)

    resolver = tag_resolver or TagResolver(properties)
    tags = resolver.resolve_tags()

    publisher = HealthGaugePublisher(registry, aggregator, indicators)
    gauge = publisher.publish(tags)

    customizer = CommonTagsCustomizer(tags)
    registry.customize(customizer)

    return MetricsConfiguration(
        tags=tags,
        composite=publisher.composite,
        gauge=gauge,
        customizer=customizer,
    )
