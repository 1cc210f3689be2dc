"""Health indicators and their aggregation."""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Status(str, Enum):
    """Health status codes."""

    UP = "UP"
    DOWN = "DOWN"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    UNKNOWN = "UNKNOWN"


@dataclass
class Health:
    """Result of a single health check."""

    status: Status | str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return self.status.value if isinstance(self.status, Status) else str(self.status)

    @classmethod
    def up(cls, **details: Any) -> "Health":
        return cls(Status.UP, details)

    @classmethod
    def down(cls, **details: Any) -> "Health":
        return cls(Status.DOWN, details)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.code}
        if self.details:
            data["details"] = {
                key: value.to_dict() if isinstance(value, Health) else value
                for key, value in self.details.items()
            }
        return data


class HealthIndicator(Protocol):
    """Anything that can report its health."""

    def health(self) -> Health: ...


CheckResult = bool | tuple[bool, str] | Health


class FunctionHealthIndicator:
    """Adapts a plain check function to a health indicator.

    The check may return a bool, a ``(healthy, message)`` tuple, or a
    ``Health``. A check that raises is reported as DOWN.
    """

    def __init__(self, check: Callable[[], CheckResult]) -> None:
        self.check = check

    def health(self) -> Health:
        try:
            return self._to_health(self.check())
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            return Health.down(error=f"{type(e).__name__}: {e}")

    @staticmethod
    def _to_health(result: CheckResult) -> Health:
        if isinstance(result, Health):
            return result
        if isinstance(result, tuple):
            healthy, message = result
            status = Status.UP if healthy else Status.DOWN
            return Health(status, {"message": message})
        return Health.up() if result else Health.down()


DEFAULT_STATUS_ORDER = (
    Status.DOWN.value,
    Status.OUT_OF_SERVICE.value,
    Status.UP.value,
    Status.UNKNOWN.value,
)


class OrderedHealthAggregator:
    """Aggregates by picking the most severe status in a fixed order."""

    def __init__(self, order: Sequence[str] | None = None) -> None:
        self.order = list(order or DEFAULT_STATUS_ORDER)

    def aggregate_status(self, codes: Iterable[str]) -> str:
        candidates = list(codes)
        if not candidates:
            return Status.UNKNOWN.value

        # Codes outside the configured order sort after every known code
        def rank(code: str) -> int:
            try:
                return self.order.index(code)
            except ValueError:
                return len(self.order)

        return min(candidates, key=rank)

    def aggregate(self, healths: Mapping[str, Health]) -> Health:
        code = self.aggregate_status(health.code for health in healths.values())
        try:
            status: Status | str = Status(code)
        except ValueError:
            status = code
        return Health(status, dict(healths))


class CompositeHealthIndicator:
    """A health indicator combining several named indicators."""

    def __init__(
        self,
        aggregator: OrderedHealthAggregator,
        indicators: Mapping[str, HealthIndicator] | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.indicators: dict[str, HealthIndicator] = dict(indicators or {})

    def add_indicator(self, name: str, indicator: HealthIndicator) -> None:
        self.indicators[name] = indicator

    def health(self) -> Health:
        healths = {
            name: self._evaluate(name, indicator)
            for name, indicator in self.indicators.items()
        }
        return self.aggregator.aggregate(healths)

    @staticmethod
    def _evaluate(name: str, indicator: HealthIndicator) -> Health:
        # One failing indicator must not hide the others
        try:
            return indicator.health()
        except Exception as e:
            logger.warning(f"Health indicator {name} failed: {e}")
            return Health.down(error=f"{type(e).__name__}: {e}")
