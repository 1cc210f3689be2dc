"""Default management properties applied before metrics are configured."""

import logging

from prometheus_starter.config import PropertyResolver, is_blank

logger = logging.getLogger(__name__)

PROMETHEUS_ENABLED_KEY = "management.metrics.export.prometheus.enabled"
EXPOSURE_INCLUDE_KEY = "management.endpoints.web.exposure.include"

DEFAULT_PROPERTIES = {
    PROMETHEUS_ENABLED_KEY: "true",
    EXPOSURE_INCLUDE_KEY: "health,info,env,prometheus,metrics,httptrace,threaddump,heapdump",
}


def apply_defaults(properties: PropertyResolver) -> None:
    """Switch on Prometheus export and endpoint exposure when left unset.

    Values the hosting application already configured, including an explicit
    ``"false"``, are kept.
    """
    for key, default in DEFAULT_PROPERTIES.items():
        if is_blank(properties.get_property(key)):
            properties.set_property(key, default)
            logger.debug(
                "Applied default property",
                extra={"property": key, "value": default},
            )
