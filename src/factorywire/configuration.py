from __future__ import annotations

import logging

from factorywire.definitions import ComponentDefinition
from factorywire.registry import DefinitionRegistry
from factorywire.scanner import WiringFactoryPostProcessor

logger = logging.getLogger(__name__)

WIRING_FACTORY_POST_PROCESSOR_NAME = "wiringFactoryPostProcessor"


def enable_wiring_factories(registry: DefinitionRegistry) -> ComponentDefinition:
    """Register the post-processor that synthesizes wiring factory products.

    Call once per registry before the container is assembled. Without it,
    factories still resolve but their products have no definition, so wiring
    falls back to ``Injected[...]`` fields only.

    Args:
        registry: Registry the container will be assembled from.

    Returns:
        The post-processor definition.

    Raises:
        DuplicateDefinitionError: If wiring factories are already enabled.

    """
    definition = registry.add_concrete(
        WiringFactoryPostProcessor,
        name=WIRING_FACTORY_POST_PROCESSOR_NAME,
    )
    logger.debug("Enabled wiring factories on registry with %d definitions", len(registry))
    return definition
