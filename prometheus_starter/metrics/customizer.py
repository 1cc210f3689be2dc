"""Registry customizer applying instance tags as common labels."""

import logging
from collections.abc import Mapping

from prometheus_starter.metrics.registry import MeterRegistry
from prometheus_starter.tags import TAG_INSTANCE

logger = logging.getLogger(__name__)


class CommonTagsCustomizer:
    """Adds every tag except ``instance`` as a common label.

    ``instance`` identifies a single process and would split every series
    per replica, so it is skipped under any casing.
    """

    def __init__(self, tags: Mapping[str, str]) -> None:
        self.tags = tags

    def __call__(self, registry: MeterRegistry) -> None:
        for key, value in self.tags.items():
            if key.lower() == TAG_INSTANCE:
                continue
            registry.add_common_tag(key, value)
        logger.debug(
            "Applied common tags",
            extra={"common_tags": dict(registry.common_tags)},
        )
