"""Shared pytest fixtures for factorywire tests."""

import pytest

from factorywire.assembly import AssemblyContext
from factorywire.class_loading import ClassLoader
from factorywire.configuration import enable_wiring_factories
from factorywire.registry import DefinitionRegistry


@pytest.fixture()
def registry() -> DefinitionRegistry:
    """Empty registry without wiring factory support."""
    return DefinitionRegistry()


@pytest.fixture()
def wiring_registry() -> DefinitionRegistry:
    """Registry with the wiring factory post-processor registered."""
    registry = DefinitionRegistry()
    enable_wiring_factories(registry)
    return registry


@pytest.fixture()
def class_loader() -> ClassLoader:
    return ClassLoader()


@pytest.fixture()
def assembly_context(registry: DefinitionRegistry, class_loader: ClassLoader) -> AssemblyContext:
    """Assembly context over the empty ``registry`` fixture."""
    return AssemblyContext(registry=registry, class_loader=class_loader)
