"""Tests for synthesized product definitions."""

from factorywire.definitions import AutowireMode, DefinitionSource, Scope
from factorywire.synthesis import synthesize_definition


class OrderProcessor:
    pass


class TestSynthesizeDefinition:
    def test_definition_attributes(self) -> None:
        definition = synthesize_definition(OrderProcessor, origin="orderProcessorFactory")

        assert definition.name == "orderProcessor"
        assert definition.target_type is OrderProcessor
        assert definition.scope is Scope.PROTOTYPE
        assert definition.lazy is True
        assert definition.autowire is AutowireMode.CONSTRUCTOR
        assert definition.source is DefinitionSource.SYNTHESIZED
        assert definition.origin == "orderProcessorFactory"

    def test_same_product_yields_equal_definitions(self) -> None:
        assert synthesize_definition(OrderProcessor) == synthesize_definition(OrderProcessor)

    def test_definition_is_prototype(self) -> None:
        definition = synthesize_definition(OrderProcessor)

        assert definition.is_prototype
        assert not definition.is_singleton
