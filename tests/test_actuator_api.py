"""Tests for the /actuator endpoints and application factory."""

from typing import Any

from flask import Flask

from prometheus_starter import config as config_module
from prometheus_starter.app import create_app
from prometheus_starter.bootstrap import EXPOSURE_INCLUDE_KEY, PROMETHEUS_ENABLED_KEY
from prometheus_starter.config import Settings
from prometheus_starter.health import FunctionHealthIndicator, Health, Status


class BrokenIndicator:
    def health(self) -> Health:
        raise RuntimeError("db driver crashed")


def _create_app(monkeypatch: Any, settings: Settings, indicators: list) -> Flask:
    monkeypatch.setattr(
        "prometheus_starter.tags.discover_host_address",
        lambda *args, **kwargs: "10.1.2.3",
    )
    return create_app(settings=settings, health_indicators=indicators)


class TestAppFactory:
    """Test create_app()."""

    def test_create_app_has_container(self, app: Flask):
        assert hasattr(app, "container")

    def test_metrics_configured_once(self, container: Any):
        assert container.metrics_configuration() is container.metrics_configuration()
        assert container.meter_registry().find_gauge("health") is not None

    def test_defaults_applied_process_wide(self, app: Flask):
        assert config_module.SYSTEM_PROPERTIES[PROMETHEUS_ENABLED_KEY] == "true"
        assert "prometheus" in config_module.SYSTEM_PROPERTIES[EXPOSURE_INCLUDE_KEY]

    def test_invalid_discovery_settings_do_not_block_startup(
        self, monkeypatch: Any, test_settings: Settings
    ):
        settings = test_settings.model_copy(
            update={"host_discovery_port": 0, "host_discovery_timeout": -1.0}
        )
        app = _create_app(monkeypatch, settings, [])
        try:
            assert settings.host_discovery_port == 10002
            assert settings.host_discovery_timeout == 2.0
            assert app.test_client().get("/actuator/health").status_code == 200
        finally:
            app.container.unwire()


class TestHealthEndpoint:
    """Tests for /actuator/health."""

    def test_health_up(self, client: Any):
        response = client.get("/actuator/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "UP"
        assert data["details"]["0"]["status"] == "UP"

    def test_health_down_returns_503(self, monkeypatch: Any, test_settings: Settings):
        app = _create_app(
            monkeypatch,
            test_settings,
            [
                FunctionHealthIndicator(lambda: True),
                FunctionHealthIndicator(lambda: (False, "database unreachable")),
            ],
        )
        try:
            response = app.test_client().get("/actuator/health")

            assert response.status_code == 503
            data = response.get_json()
            assert data["status"] == "DOWN"
            assert data["details"]["1"]["details"]["message"] == "database unreachable"
        finally:
            app.container.unwire()

    def test_out_of_service_returns_503(self, monkeypatch: Any, test_settings: Settings):
        app = _create_app(
            monkeypatch,
            test_settings,
            [FunctionHealthIndicator(lambda: Health(Status.OUT_OF_SERVICE))],
        )
        try:
            response = app.test_client().get("/actuator/health")
            assert response.status_code == 503
        finally:
            app.container.unwire()


class TestPrometheusEndpoint:
    """Tests for /actuator/prometheus."""

    def test_returns_prometheus_format(self, client: Any, container: Any):
        response = client.get("/actuator/prometheus")

        assert response.status_code == 200
        assert "text/plain" in response.content_type
        text = response.data.decode("utf-8")
        for fragment in (
            'application="orders-service"',
            'port="9090"',
            'address="10.1.2.3"',
            'env="staging"',
        ):
            assert fragment in text
        assert "instance=" not in text
        assert container.meter_registry().registry.get_sample_value(
            "health",
            {
                "application": "orders-service",
                "address": "10.1.2.3",
                "port": "9090",
                "env": "staging",
            },
        ) == 3.0

    def test_failing_indicator_keeps_scrape_alive(
        self, monkeypatch: Any, test_settings: Settings
    ):
        app = _create_app(monkeypatch, test_settings, [BrokenIndicator()])
        try:
            client = app.test_client()

            response = client.get("/actuator/prometheus")
            assert response.status_code == 200
            assert "# TYPE health gauge" in response.data.decode("utf-8")

            health = client.get("/actuator/health")
            assert health.status_code == 503
            assert health.get_json()["details"]["0"]["details"]["error"] == (
                "RuntimeError: db driver crashed"
            )
        finally:
            app.container.unwire()

    def test_disabled_export_returns_404(self, monkeypatch: Any, test_settings: Settings):
        settings = test_settings.model_copy(update={"prometheus_enabled": "false"})
        app = _create_app(monkeypatch, settings, [])
        try:
            response = app.test_client().get("/actuator/prometheus")
            assert response.status_code == 404
        finally:
            app.container.unwire()


class TestExposure:
    """Tests for endpoint exposure filtering."""

    def test_unexposed_endpoint_returns_404(self, monkeypatch: Any, test_settings: Settings):
        settings = test_settings.model_copy(
            update={"endpoints_exposure_include": "health"}
        )
        app = _create_app(monkeypatch, settings, [])
        try:
            client = app.test_client()
            assert client.get("/actuator/health").status_code == 200
            assert client.get("/actuator/prometheus").status_code == 404
            assert client.get("/actuator/metrics").status_code == 404
            assert client.get("/actuator/info").status_code == 404
        finally:
            app.container.unwire()

    def test_wildcard_exposes_everything(self, monkeypatch: Any, test_settings: Settings):
        settings = test_settings.model_copy(update={"endpoints_exposure_include": "*"})
        app = _create_app(monkeypatch, settings, [])
        try:
            assert app.test_client().get("/actuator/metrics").status_code == 200
        finally:
            app.container.unwire()


class TestMetricsAndInfoEndpoints:
    """Tests for /actuator/metrics and /actuator/info."""

    def test_metrics_lists_health_gauge(self, client: Any):
        response = client.get("/actuator/metrics")

        assert response.status_code == 200
        assert "health" in response.get_json()["names"]

    def test_info_returns_tags(self, client: Any):
        response = client.get("/actuator/info")

        assert response.status_code == 200
        tags = response.get_json()["tags"]
        assert tags["instance"] == "10.1.2.3:9090"
        assert tags["env"] == "staging"
