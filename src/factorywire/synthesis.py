from __future__ import annotations

from typing import Any

from factorywire.definitions import AutowireMode, ComponentDefinition, DefinitionSource, Scope
from factorywire.naming import derive_name


def synthesize_definition(
    product_type: type[Any],
    *,
    origin: str | None = None,
) -> ComponentDefinition:
    """Build the definition registered for a wiring factory's product type.

    Products are built once per factory call and never shared, so the
    definition is prototype-scoped and lazy: it exists only so the container can
    compute dependency metadata for the product on demand.

    Args:
        product_type: Concrete class manufactured by the factory.
        origin: Name of the factory definition that caused the synthesis.

    """
    return ComponentDefinition(
        name=derive_name(product_type),
        target_type=product_type,
        scope=Scope.PROTOTYPE,
        lazy=True,
        autowire=AutowireMode.CONSTRUCTOR,
        source=DefinitionSource.SYNTHESIZED,
        origin=origin,
    )
