"""Pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv
from flask import Flask

from prometheus_starter import config as config_module
from prometheus_starter.app import create_app
from prometheus_starter.config import PropertyResolver, Settings
from prometheus_starter.health.indicators import FunctionHealthIndicator
from prometheus_starter.metrics.registry import MeterRegistry
from prometheus_starter.tags import TagResolver

# Load test environment variables from .env.test
_TEST_ENV_FILE = Path(__file__).parent.parent / ".env.test"
if _TEST_ENV_FILE.exists():
    load_dotenv(_TEST_ENV_FILE, override=True)


@pytest.fixture(autouse=True)
def clear_system_properties() -> Generator[None, None, None]:
    """Reset process-wide property overrides for isolation."""
    config_module.SYSTEM_PROPERTIES.clear()
    yield
    config_module.SYSTEM_PROPERTIES.clear()


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    return Settings(
        application_name="Orders-Service",
        server_port="9090",
        env=None,
        profiles_active="Staging",
        cloud_config_profile=None,
        host_discovery_target="192.0.2.1",
        host_discovery_port=10002,
        host_discovery_timeout=0.5,
    )


@pytest.fixture
def test_settings() -> Settings:
    return _build_test_settings()


@pytest.fixture
def overrides() -> dict[str, str]:
    return {}


@pytest.fixture
def properties(test_settings: Settings, overrides: dict[str, str]) -> PropertyResolver:
    return PropertyResolver(test_settings, overrides=overrides)


@pytest.fixture
def tag_resolver(properties: PropertyResolver) -> TagResolver:
    return TagResolver(properties, host_discovery=lambda: "10.1.2.3")


@pytest.fixture
def meter_registry() -> MeterRegistry:
    return MeterRegistry()


@pytest.fixture
def app(
    test_settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> Generator[Flask, None, None]:
    """Create Flask app with a fixed host address and one healthy indicator."""
    monkeypatch.setattr(
        "prometheus_starter.tags.discover_host_address",
        lambda *args, **kwargs: "10.1.2.3",
    )
    app = create_app(
        settings=test_settings,
        health_indicators=[FunctionHealthIndicator(lambda: True)],
    )

    yield app

    app.container.unwire()


@pytest.fixture
def client(app: Flask) -> Any:
    return app.test_client()


@pytest.fixture
def container(app: Flask) -> Any:
    return app.container
