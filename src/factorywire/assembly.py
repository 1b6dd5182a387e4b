from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from factorywire.class_loading import ClassLoader
from factorywire.definitions import ComponentDefinition
from factorywire.registry import DefinitionRegistry, RegistrySnapshot


@dataclass(slots=True)
class AssemblyContext:
    """Own the mutable registry while a container is being assembled.

    Post-processors receive this context instead of the registry itself. It is
    the only writer to the registry during assembly; ``freeze`` converts the
    definitions into the immutable snapshot the running container uses.
    """

    registry: DefinitionRegistry
    class_loader: ClassLoader

    def list_definitions(self) -> list[tuple[str, ComponentDefinition]]:
        return self.registry.list_definitions()

    def get_declared_type(self, name: str) -> type[Any] | None:
        """Return the type of a definition known without class loading, if any."""
        return self.registry.get_declared_type(name)

    def get_declared_annotation(self, name: str) -> Any:
        """Return a definition's static type, keeping factory-method type arguments."""
        return self.registry.get_declared_annotation(name)

    def load_type(self, class_name: str) -> type[Any]:
        """Resolve a dotted class name against the importable modules.

        Raises:
            ClassResolutionError: If the class cannot be loaded.

        """
        return self.class_loader.load_type(class_name)

    def contains_definition(self, name: str) -> bool:
        return self.registry.contains_definition(name)

    def register_definition(self, name: str, definition: ComponentDefinition) -> None:
        """Register a definition; raises ``DuplicateDefinitionError`` on name collision."""
        self.registry.register_definition(name, definition)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self.registry.transaction():
            yield

    def freeze(self) -> RegistrySnapshot:
        return self.registry.freeze()


class DefinitionPostProcessor(ABC):
    """Hook that may add definitions before any component is instantiated.

    The container instantiates every registered post-processor with no
    arguments at the start of assembly and calls ``post_process`` once, in
    registration order. Errors abort assembly.
    """

    @abstractmethod
    def post_process(self, context: AssemblyContext) -> None: ...
