"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean settings with lowercase fields

Dotted property keys (``spring.application.name``) use relaxed binding: the
matching environment variable is the key upper-cased with dots replaced by
underscores (``SPRING_APPLICATION_NAME``).
"""

import ipaddress
import logging
from collections.abc import MutableMapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_DISCOVERY_TARGET = "8.8.8.8"
_DEFAULT_DISCOVERY_PORT = 10002
_DEFAULT_DISCOVERY_TIMEOUT = 2.0

# Process-wide property overrides, shared by every resolver unless one is given
SYSTEM_PROPERTIES: dict[str, str] = {}


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    FLASK_ENV: str = Field(default="development")

    # ── Instance identity ──────────────────────────────────────────────

    SPRING_APPLICATION_NAME: str | None = Field(default=None)
    SERVER_PORT: str | None = Field(default=None)
    ENV: str | None = Field(default=None)
    SPRING_PROFILES_ACTIVE: str | None = Field(default=None)
    SPRING_CLOUD_CONFIG_PROFILE: str | None = Field(default=None)

    # ── Management ─────────────────────────────────────────────────────

    MANAGEMENT_METRICS_EXPORT_PROMETHEUS_ENABLED: str | None = Field(default=None)
    MANAGEMENT_ENDPOINTS_WEB_EXPOSURE_INCLUDE: str | None = Field(default=None)

    # ── Host address discovery ─────────────────────────────────────────

    HOST_DISCOVERY_TARGET: str = Field(default=_DEFAULT_DISCOVERY_TARGET)
    HOST_DISCOVERY_PORT: int = Field(default=_DEFAULT_DISCOVERY_PORT)
    HOST_DISCOVERY_TIMEOUT: float = Field(default=_DEFAULT_DISCOVERY_TIMEOUT)


class Settings(BaseModel):
    """Starter settings with lowercase fields."""

    model_config = ConfigDict(from_attributes=True)

    flask_env: str = "development"

    application_name: str | None = None
    server_port: str | None = None
    env: str | None = None
    profiles_active: str | None = None
    cloud_config_profile: str | None = None

    prometheus_enabled: str | None = None
    endpoints_exposure_include: str | None = None

    host_discovery_target: str = _DEFAULT_DISCOVERY_TARGET
    host_discovery_port: int = _DEFAULT_DISCOVERY_PORT
    host_discovery_timeout: float = _DEFAULT_DISCOVERY_TIMEOUT

    @property
    def is_debug(self) -> bool:
        return self.flask_env in ("development", "testing")

    def validate_config(self) -> None:
        """Replace invalid discovery settings with defaults.

        Address discovery degrades to loopback rather than failing startup,
        so bad values are logged and reset instead of raised.
        """
        if not 0 < self.host_discovery_port < 65536:
            logger.warning(
                f"HOST_DISCOVERY_PORT {self.host_discovery_port} out of range, using {_DEFAULT_DISCOVERY_PORT}"
            )
            self.host_discovery_port = _DEFAULT_DISCOVERY_PORT
        if self.host_discovery_timeout <= 0:
            logger.warning(
                f"HOST_DISCOVERY_TIMEOUT {self.host_discovery_timeout} not positive, "
                f"using {_DEFAULT_DISCOVERY_TIMEOUT}"
            )
            self.host_discovery_timeout = _DEFAULT_DISCOVERY_TIMEOUT
        try:
            ipaddress.ip_address(self.host_discovery_target)
        except ValueError:
            # Name resolution is not bounded by the socket timeout
            logger.warning(
                f"HOST_DISCOVERY_TARGET {self.host_discovery_target!r} is not an IP address, "
                "startup may block on DNS resolution"
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        return cls(
            flask_env=env.FLASK_ENV,
            application_name=env.SPRING_APPLICATION_NAME,
            server_port=env.SERVER_PORT,
            env=env.ENV,
            profiles_active=env.SPRING_PROFILES_ACTIVE,
            cloud_config_profile=env.SPRING_CLOUD_CONFIG_PROFILE,
            prometheus_enabled=env.MANAGEMENT_METRICS_EXPORT_PROMETHEUS_ENABLED,
            endpoints_exposure_include=env.MANAGEMENT_ENDPOINTS_WEB_EXPOSURE_INCLUDE,
            host_discovery_target=env.HOST_DISCOVERY_TARGET,
            host_discovery_port=env.HOST_DISCOVERY_PORT,
            host_discovery_timeout=env.HOST_DISCOVERY_TIMEOUT,
        )


# Dotted property key -> Settings field
_PROPERTY_FIELDS = {
    "spring.application.name": "application_name",
    "server.port": "server_port",
    "env": "env",
    "spring.profiles.active": "profiles_active",
    "spring.cloud.config.profile": "cloud_config_profile",
    "management.metrics.export.prometheus.enabled": "prometheus_enabled",
    "management.endpoints.web.exposure.include": "endpoints_exposure_include",
}


class PropertyResolver:
    """Looks up dotted property keys.

    Process overrides take precedence over loaded settings. Blank values at
    either layer are treated as unset, so lookups fall through to the
    caller's default instead of raising.
    """

    def __init__(
        self,
        settings: Settings,
        overrides: MutableMapping[str, str] | None = None,
    ) -> None:
        self.settings = settings
        self._overrides = SYSTEM_PROPERTIES if overrides is None else overrides

    def get_property(self, key: str, default: str | None = None) -> str | None:
        value = self._overrides.get(key)
        if is_blank(value):
            field = _PROPERTY_FIELDS.get(key)
            value = getattr(self.settings, field) if field else None
        if is_blank(value):
            return default
        return value

    def set_property(self, key: str, value: str) -> None:
        """Set a process-wide override for ``key``."""
        self._overrides[key] = value
        logger.debug(f"Property override set: {key}={value}")
