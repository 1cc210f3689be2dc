"""Actuator HTTP endpoints."""

from prometheus_starter.actuator.routes import actuator_bp

__all__ = ["actuator_bp"]
