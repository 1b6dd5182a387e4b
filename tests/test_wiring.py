"""Tests for the wiring bridge and factory base classes."""

from collections.abc import Iterator

import pytest

from factorywire.container import Container
from factorywire.exceptions import ContainerNotAssembledError, NoSuchDefinitionError
from factorywire.injection import ContainerAware
from factorywire.markers import Injected, post_construct, prototype_component
from factorywire.registry import DefinitionRegistry
from factorywire.wiring import WiringBridge, WiringFactory, WiringFactorySupport


class Clock:
    pass


@prototype_component
class Reading:
    clock: Injected[Clock]

    def __init__(self, value: float) -> None:
        self.value = value
        self.checked = False

    @post_construct
    def check(self) -> None:
        self.checked = True


class ReadingFactory(WiringFactorySupport[Reading]):
    def make(self, value: float) -> Reading:
        return self.wire(Reading(value))


class Orphan:
    missing: Injected[Clock]


@pytest.fixture()
def container(wiring_registry: DefinitionRegistry) -> Iterator[Container]:
    wiring_registry.add_concrete(Clock)
    wiring_registry.add_concrete(ReadingFactory)
    with Container(wiring_registry) as container:
        yield container


class TestWiringBridge:
    def test_wire_returns_same_instance(self, container: Container) -> None:
        bridge = WiringBridge(container)
        reading = Reading(1.5)

        assert bridge.wire(reading) is reading
        assert reading.clock is container.get("clock")
        assert reading.checked is True

    def test_wire_propagates_injection_errors(self, registry: DefinitionRegistry) -> None:
        with Container(registry) as container, pytest.raises(NoSuchDefinitionError) as exc_info:
            WiringBridge(container).wire(Orphan())

        assert exc_info.value.required_by == "Orphan"

    def test_wire_on_unassembled_container_raises(self, registry: DefinitionRegistry) -> None:
        bridge = WiringBridge(Container(registry))

        with pytest.raises(ContainerNotAssembledError):
            bridge.wire(Reading(0.0))


class TestWiringFactorySupport:
    def test_support_is_factory_and_container_aware(self) -> None:
        assert issubclass(ReadingFactory, WiringFactory)
        assert issubclass(ReadingFactory, ContainerAware)

    def test_factory_receives_container(self, container: Container) -> None:
        factory = container.get("readingFactory")

        reading = factory.make(2.5)

        assert reading.value == 2.5
        assert reading.clock is container.get("clock")
        assert reading.checked is True

    def test_products_keep_arguments(self, container: Container) -> None:
        factory = container.get_by_type(ReadingFactory)

        first = factory.make(1.0)
        second = factory.make(2.0)

        assert first is not second
        assert (first.value, second.value) == (1.0, 2.0)
        assert first.clock is second.clock

    def test_unmanaged_factory_cannot_wire(self) -> None:
        with pytest.raises(ContainerNotAssembledError, match="ReadingFactory has no container"):
            ReadingFactory().make(1.0)

    def test_prototype_component_marker_is_informational(self, container: Container) -> None:
        assert container.definitions.get_definition("reading").target_type is Reading
