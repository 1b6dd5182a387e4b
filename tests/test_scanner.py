"""Tests for registering wiring factory products during assembly."""

import logging
from typing import TypeVar

import pytest

from factorywire.assembly import AssemblyContext
from factorywire.definitions import AutowireMode, DefinitionSource, Scope
from factorywire.exceptions import DuplicateDefinitionError, TypeResolutionError
from factorywire.registry import DefinitionRegistry
from factorywire.scanner import WiringFactoryPostProcessor
from factorywire.wiring import WiringFactory, WiringFactorySupport

T = TypeVar("T")


class BeanA:
    def __init__(self, value: str) -> None:
        self.value = value


class BeanB:
    pass


class BeanAFactory(WiringFactorySupport[BeanA]):
    def make(self, value: str) -> BeanA:
        return self.wire(BeanA(value))


class OtherBeanAFactory(WiringFactory[BeanA]):
    pass


class BeanBFactory(WiringFactorySupport[BeanB]):
    pass


class UnboundFactory(WiringFactorySupport[T]):
    pass


class PlainService:
    pass


def bean_a_factory() -> BeanAFactory:
    return BeanAFactory()


def bean_a_factory_interface() -> WiringFactory[BeanA]:
    return OtherBeanAFactory()


def bean_b_support() -> WiringFactorySupport[BeanB]:
    return BeanBFactory()


def open_factory() -> UnboundFactory[T]:
    return UnboundFactory()


@pytest.fixture()
def scanner() -> WiringFactoryPostProcessor:
    return WiringFactoryPostProcessor()


class TestScan:
    def test_registers_product_of_concrete_factory(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(BeanAFactory)

        registered = scanner.scan(assembly_context)

        definition = registry.get_definition("beanA")
        assert registered == [definition]
        assert definition.target_type is BeanA
        assert definition.scope is Scope.PROTOTYPE
        assert definition.lazy is True
        assert definition.autowire is AutowireMode.CONSTRUCTOR
        assert definition.source is DefinitionSource.SYNTHESIZED
        assert definition.origin == "beanAFactory"

    def test_registers_product_of_factory_method(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_factory_method(bean_a_factory)

        scanner.scan(assembly_context)

        assert registry.get_definition("beanA").origin == "bean_a_factory"

    def test_registers_product_of_parameterized_return_annotation(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        """A factory method typed as ``WiringFactory[BeanA]`` binds the product through the annotation."""
        registry.add_factory_method(bean_a_factory_interface)
        registry.add_factory_method(bean_b_support)

        registered = scanner.scan(assembly_context)

        assert [(definition.name, definition.target_type) for definition in registered] == [
            ("beanA", BeanA),
            ("beanB", BeanB),
        ]
        assert registry.get_definition("beanA").origin == "bean_a_factory_interface"

    def test_registers_product_of_instance(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_instance(BeanAFactory(), name="factory")

        scanner.scan(assembly_context)

        assert registry.get_definition("beanA").target_type is BeanA

    def test_registers_product_of_class_name_definition(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_class_name(f"{__name__}.BeanAFactory", name="factory")

        scanner.scan(assembly_context)

        assert registry.get_definition("beanA").target_type is BeanA

    def test_registers_one_definition_per_factory(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(PlainService)
        registry.add_concrete(BeanAFactory)
        registry.add_concrete(BeanBFactory)

        registered = scanner.scan(assembly_context)

        assert [definition.name for definition in registered] == ["beanA", "beanB"]
        assert registry.definition_names() == [
            "plainService",
            "beanAFactory",
            "beanBFactory",
            "beanA",
            "beanB",
        ]

    def test_non_factories_are_ignored(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(PlainService)
        registry.add_instance("something", name="otherBean")

        assert scanner.scan(assembly_context) == []
        assert len(registry) == 2

    def test_unloadable_class_name_is_skipped(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        registry.add_class_name("missing_module_for_factorywire.Factory", name="ghost")
        registry.add_concrete(BeanAFactory)

        with caplog.at_level(logging.DEBUG, logger="factorywire.scanner"):
            scanner.scan(assembly_context)

        assert registry.contains_definition("beanA")
        assert "Skipping definition ghost" in caplog.text

    def test_logs_each_synthesized_definition(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        registry.add_concrete(BeanAFactory)

        with caplog.at_level(logging.DEBUG, logger="factorywire.scanner"):
            scanner.scan(assembly_context)

        assert "Dynamically adding prototype component beanA from factory beanAFactory" in caplog.text

    def test_post_process_runs_scan(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(BeanAFactory)

        scanner.post_process(assembly_context)

        assert registry.contains_definition("beanA")


class TestScanErrors:
    def test_collision_with_existing_definition(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_instance("taken", name="beanA")
        registry.add_concrete(BeanBFactory)
        registry.add_concrete(BeanAFactory)
        before = registry.list_definitions()

        with pytest.raises(DuplicateDefinitionError) as exc_info:
            scanner.scan(assembly_context)

        assert exc_info.value.name == "beanA"
        assert exc_info.value.factory_name == "beanAFactory"
        assert "beanAFactory" in str(exc_info.value)
        assert registry.list_definitions() == before

    def test_two_factories_of_same_product_collide(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(BeanAFactory)
        registry.add_concrete(OtherBeanAFactory)

        with pytest.raises(DuplicateDefinitionError) as exc_info:
            scanner.scan(assembly_context)

        assert exc_info.value.factory_name == "otherBeanAFactory"
        assert registry.definition_names() == ["beanAFactory", "otherBeanAFactory"]

    def test_scanning_twice_collides(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(BeanAFactory)
        scanner.scan(assembly_context)

        with pytest.raises(DuplicateDefinitionError):
            scanner.scan(assembly_context)

        assert registry.definition_names() == ["beanAFactory", "beanA"]

    def test_unbound_generic_factory_raises(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_concrete(BeanAFactory)
        registry.add_concrete(UnboundFactory)

        with pytest.raises(TypeResolutionError) as exc_info:
            scanner.scan(assembly_context)

        assert exc_info.value.factory_type is UnboundFactory
        assert exc_info.value.definition_name == "unboundFactory"
        assert not registry.contains_definition("beanA")

    def test_unbound_parameterized_return_annotation_raises(
        self,
        scanner: WiringFactoryPostProcessor,
        registry: DefinitionRegistry,
        assembly_context: AssemblyContext,
    ) -> None:
        registry.add_factory_method(open_factory)

        with pytest.raises(TypeResolutionError) as exc_info:
            scanner.scan(assembly_context)

        assert exc_info.value.definition_name == "open_factory"
