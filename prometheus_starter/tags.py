"""Instance tags describing this running process.

The tag set (application, port, address, instance, env) is resolved once and
then served from an immutable mapping for the rest of the process lifetime.
"""

import logging
import socket
import threading
from collections.abc import Callable, Mapping
from types import MappingProxyType

from prometheus_starter.config import PropertyResolver, is_blank

logger = logging.getLogger(__name__)

TAG_APPLICATION = "application"
TAG_INSTANCE = "instance"
TAG_ADDRESS = "address"
TAG_ENV = "env"
TAG_PORT = "port"

DEFAULT_APPLICATION = "micrometer"
DEFAULT_PORT = "8080"
ENV_DEFAULT = "default"
LOCALHOST = "127.0.0.1"

DISCOVERY_TARGET = "8.8.8.8"
DISCOVERY_PORT = 10002
DISCOVERY_TIMEOUT = 2.0

_ENV_PROPERTIES = ("env", "spring.profiles.active", "spring.cloud.config.profile")


def discover_host_address(
    target: str = DISCOVERY_TARGET,
    port: int = DISCOVERY_PORT,
    timeout: float = DISCOVERY_TIMEOUT,
) -> str:
    """Return the local address the OS would use for outbound traffic.

    Connecting a UDP socket sends no packets; it only makes the kernel pick a
    route and bind a local address, which is read back. Any failure falls
    back to the loopback address.

    ``target`` should be an IP literal: the timeout bounds the socket, not
    the name lookup a hostname would need.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.settimeout(timeout)
            sock.connect((target, port))
            return sock.getsockname()[0]
    except Exception as e:
        logger.error(f"Host address discovery failed, using {LOCALHOST}: {e}")
        return LOCALHOST


def resolve_environment(properties: PropertyResolver) -> str:
    """Pick the first non-blank of env, active profiles, config profile."""
    candidates = [properties.get_property(key) for key in _ENV_PROPERTIES]
    logger.debug(
        "Environment candidates",
        extra=dict(zip(("env", "profiles_active", "config_profile"), candidates)),
    )
    for candidate in candidates:
        if not is_blank(candidate):
            return candidate
    return ENV_DEFAULT


class TagResolver:
    """Resolves and caches the instance tag set.

    A blank application name or port counts as unset and takes its default,
    so ``instance`` is left out only when no address could be found or the
    property lookup itself yields a blank port.
    """

    def __init__(
        self,
        properties: PropertyResolver,
        host_discovery: Callable[[], str] | None = None,
    ) -> None:
        self.properties = properties
        self._host_discovery = host_discovery or self._discover_from_settings
        self._tags: Mapping[str, str] | None = None
        self._lock = threading.Lock()

    def resolve_tags(self) -> Mapping[str, str]:
        """Return the tag set, computing it on first call only."""
        if self._tags is not None:
            return self._tags

        with self._lock:
            if self._tags is None:
                self._tags = MappingProxyType(self._build_tags())
                logger.debug(f"TAGS:{self.tags_to_string()}")
        return self._tags

    def tags_to_string(self) -> str | None:
        if not self._tags:
            return None
        return "".join(f"{key}={value}," for key, value in self._tags.items())

    def _build_tags(self) -> dict[str, str]:
        tags: dict[str, str] = {}

        application = self.properties.get_property(
            "spring.application.name", DEFAULT_APPLICATION
        )
        tags[TAG_APPLICATION] = application.lower()

        port = self.properties.get_property("server.port", DEFAULT_PORT)
        if not is_blank(port):
            tags[TAG_PORT] = port

        address = self._host_discovery()
        if not is_blank(address):
            tags[TAG_ADDRESS] = address

        if not is_blank(address) and not is_blank(port):
            tags[TAG_INSTANCE] = f"{address}:{port}"

        tags[TAG_ENV] = resolve_environment(self.properties).lower()
        return tags

    def _discover_from_settings(self) -> str:
        settings = self.properties.settings
        return discover_host_address(
            settings.host_discovery_target,
            settings.host_discovery_port,
            settings.host_discovery_timeout,
        )
