"""Register prototype definitions for the products of wiring factories.

The scanner runs once per assembly, after explicit definitions are loaded and
before any singleton is instantiated. Each definition is classified once; for
every wiring factory it synthesizes a lazy prototype definition of the product
type and registers it under the product's derived name.
"""

from __future__ import annotations

import logging
from typing import Any

from factorywire.assembly import AssemblyContext, DefinitionPostProcessor
from factorywire.definitions import ComponentDefinition
from factorywire.exceptions import ClassResolutionError, DuplicateDefinitionError, TypeResolutionError
from factorywire.synthesis import synthesize_definition
from factorywire.type_resolution import FactoryOf, classify

logger = logging.getLogger(__name__)


class WiringFactoryPostProcessor(DefinitionPostProcessor):
    """Definition post-processor that registers wiring factory products.

    Registration is all-or-nothing: any error restores the registry to its
    state before the scan. The scan is not re-entrant; running it twice over
    the same registry collides with the definitions of the first run.
    """

    def post_process(self, context: AssemblyContext) -> None:
        self.scan(context)

    def scan(self, context: AssemblyContext) -> list[ComponentDefinition]:
        """Synthesize and register product definitions for every wiring factory.

        Args:
            context: Assembly context owning the registry.

        Returns:
            The definitions registered by this scan, in registration order.

        Raises:
            TypeResolutionError: If a factory does not bind its product type.
            DuplicateDefinitionError: If a derived product name is already taken.

        """
        logger.debug("Scanning definitions for wiring factories")
        registered: list[ComponentDefinition] = []

        with context.transaction():
            for definition_name, definition in context.list_definitions():
                factory_type = self._discover_type(context, definition_name, definition)
                if factory_type is None:
                    continue

                try:
                    classification = classify(factory_type)
                except TypeResolutionError as error:
                    raise TypeResolutionError(
                        factory_type,
                        definition_name=definition_name,
                    ) from error
                if not isinstance(classification, FactoryOf):
                    continue

                product_definition = synthesize_definition(
                    classification.product_type,
                    origin=definition_name,
                )
                self._register(context, definition_name, product_definition)
                registered.append(product_definition)

        return registered

    def _discover_type(
        self,
        context: AssemblyContext,
        definition_name: str,
        definition: ComponentDefinition,
    ) -> Any:
        # Factory-method return annotations keep their type arguments, so
        # ``-> WiringFactory[Order]`` binds the product without a subclass.
        declared = context.get_declared_annotation(definition_name)
        if declared is not None or definition.class_name is None:
            return declared

        try:
            return context.load_type(definition.class_name)
        except ClassResolutionError:
            logger.debug(
                "Skipping definition %s: class %s cannot be loaded",
                definition_name,
                definition.class_name,
            )
            return None

    def _register(
        self,
        context: AssemblyContext,
        factory_name: str,
        product_definition: ComponentDefinition,
    ) -> None:
        product_name = product_definition.name
        if context.contains_definition(product_name):
            raise DuplicateDefinitionError(product_name, factory_name=factory_name)

        logger.debug(
            "Dynamically adding prototype component %s from factory %s",
            product_name,
            factory_name,
        )
        context.register_definition(product_name, product_definition)
