"""Operational endpoints under /actuator.

Only endpoints named in ``management.endpoints.web.exposure.include`` are
served; the Prometheus endpoint additionally requires
``management.metrics.export.prometheus.enabled=true``.
"""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, Response, abort, jsonify
from prometheus_client import generate_latest

from prometheus_starter.bootstrap import EXPOSURE_INCLUDE_KEY, PROMETHEUS_ENABLED_KEY
from prometheus_starter.config import PropertyResolver
from prometheus_starter.configuration import MetricsConfiguration
from prometheus_starter.health.indicators import Status
from prometheus_starter.metrics.registry import MeterRegistry

actuator_bp = Blueprint("actuator", __name__, url_prefix="/actuator")

_UNAVAILABLE_STATUSES = {Status.DOWN.value, Status.OUT_OF_SERVICE.value}


def _require_exposed(properties: PropertyResolver, endpoint: str) -> None:
    include = properties.get_property(EXPOSURE_INCLUDE_KEY, "") or ""
    exposed = {name.strip() for name in include.split(",")}
    if "*" not in exposed and endpoint not in exposed:
        abort(404)


@actuator_bp.route("/health", methods=["GET"])
@inject
def health(
    properties: PropertyResolver = Provide["property_resolver"],
    metrics_configuration: MetricsConfiguration = Provide["metrics_configuration"],
) -> Any:
    """Composite health of all registered indicators.

    Returns:
        200 when the aggregate is UP or UNKNOWN, 503 when DOWN or OUT_OF_SERVICE
    """
    _require_exposed(properties, "health")

    composite = metrics_configuration.composite
    if composite is None:
        abort(404)

    result = composite.health()
    status_code = 503 if result.code in _UNAVAILABLE_STATUSES else 200
    return jsonify(result.to_dict()), status_code


@actuator_bp.route("/prometheus", methods=["GET"])
@inject
def prometheus(
    properties: PropertyResolver = Provide["property_resolver"],
    meter_registry: MeterRegistry = Provide["meter_registry"],
) -> Any:
    """Return metrics in Prometheus text format."""
    _require_exposed(properties, "prometheus")
    enabled = properties.get_property(PROMETHEUS_ENABLED_KEY) or ""
    if enabled.strip().lower() != "true":
        abort(404)

    return Response(
        generate_latest(meter_registry),
        content_type="text/plain; version=0.0.4; charset=utf-8",
    )


@actuator_bp.route("/metrics", methods=["GET"])
@inject
def metrics(
    properties: PropertyResolver = Provide["property_resolver"],
    meter_registry: MeterRegistry = Provide["meter_registry"],
) -> Any:
    """List registered metric names."""
    _require_exposed(properties, "metrics")
    return jsonify({"names": meter_registry.metric_names()})


@actuator_bp.route("/info", methods=["GET"])
@inject
def info(
    properties: PropertyResolver = Provide["property_resolver"],
    metrics_configuration: MetricsConfiguration = Provide["metrics_configuration"],
) -> Any:
    """Describe this instance by its resolved tags."""
    _require_exposed(properties, "info")
    return jsonify({"tags": dict(metrics_configuration.tags)})
