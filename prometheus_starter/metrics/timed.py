"""Method timing recorded into histograms."""

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from prometheus_client import Histogram

from prometheus_starter.metrics.registry import MeterRegistry

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_METRIC_NAME = "method_timed"
_LABEL_NAMES = ("class", "method", "exception")


class TimedAspect:
    """Times decorated callables.

    Example usage:
        aspect = container.timed_aspect()

        @aspect.timed("orders_place")
        def place_order(order): ...
    """

    def __init__(self, registry: MeterRegistry) -> None:
        self.registry = registry
        self._histograms: dict[str, Histogram] = {}

    def timed(
        self, name: str = DEFAULT_METRIC_NAME, description: str | None = None
    ) -> Callable[[F], F]:
        histogram = self._histogram(name, description)

        def decorator(func: F) -> F:
            qualname = func.__qualname__
            owner, _, method = qualname.rpartition(".")
            owner = owner or func.__module__

            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                exception = "none"
                start = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    exception = type(e).__name__
                    raise
                finally:
                    duration = time.perf_counter() - start
                    histogram.labels(owner, method, exception).observe(duration)

            return wrapper  # type: ignore[return-value]

        return decorator

    def _histogram(self, name: str, description: str | None) -> Histogram:
        histogram = self._histograms.get(name)
        if histogram is None:
            histogram = self.registry.histogram(
                name, description or f"Duration of {name} calls", _LABEL_NAMES
            )
            self._histograms[name] = histogram
        return histogram
