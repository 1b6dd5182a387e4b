"""Pytest fixtures for applications built on factorywire.

Enable with ``pytest_plugins = ["factorywire.integrations.pytest_plugin"]`` in a
``conftest.py``. Override ``factorywire_registry`` to register the components
under test; ``factorywire_container`` assembles it and closes it afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from factorywire.configuration import enable_wiring_factories
from factorywire.container import Container
from factorywire.registry import DefinitionRegistry


@pytest.fixture()
def factorywire_registry() -> DefinitionRegistry:
    """Create a per-test registry with wiring factories enabled.

    Returns:
        A new ``DefinitionRegistry`` holding only the wiring factory
        post-processor.

    """
    registry = DefinitionRegistry()
    enable_wiring_factories(registry)
    return registry


@pytest.fixture()
def factorywire_container(factorywire_registry: DefinitionRegistry) -> Iterator[Container]:
    """Assemble ``factorywire_registry`` into a container for one test.

    The fixture is function-scoped. Registrations must happen before the
    fixture is requested, typically by overriding ``factorywire_registry``.

    Yields:
        An assembled ``Container``.

    """
    with Container(factorywire_registry) as container:
        yield container
