"""Dependency injection container for the starter."""

from dependency_injector import containers, providers

from prometheus_starter.config import PropertyResolver, Settings
from prometheus_starter.configuration import configure_metrics
from prometheus_starter.health.indicators import OrderedHealthAggregator
from prometheus_starter.metrics.registry import MeterRegistry
from prometheus_starter.metrics.timed import TimedAspect
from prometheus_starter.tags import TagResolver


class StarterContainer(containers.DeclarativeContainer):
    """Container with the starter's singletons.

    Apps extend it to contribute health indicators:

        class AppContainer(StarterContainer):
            health_indicators = providers.List(
                providers.Singleton(FunctionHealthIndicator, check_db_connection),
            )
    """

    # Configuration - must be overridden by app
    config = providers.Dependency(instance_of=Settings)

    property_resolver = providers.Singleton(PropertyResolver, settings=config)

    meter_registry = providers.Singleton(MeterRegistry)

    health_aggregator = providers.Singleton(OrderedHealthAggregator)

    health_indicators = providers.List()

    # One tag set per process
    tag_resolver = providers.Singleton(TagResolver, properties=property_resolver)

    timed_aspect = providers.Singleton(TimedAspect, registry=meter_registry)

    metrics_configuration = providers.Singleton(
        configure_metrics,
        registry=meter_registry,
        aggregator=health_aggregator,
        indicators=health_indicators,
        properties=property_resolver,
        tag_resolver=tag_resolver,
    )
