from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeVar, get_origin, get_type_hints, overload

from factorywire.definitions import AutowireMode, ComponentDefinition, DefinitionSource, Scope
from factorywire.exceptions import DuplicateDefinitionError, InvalidDefinitionError, NoSuchDefinitionError
from factorywire.naming import derive_name

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type[Any])

logger = logging.getLogger(__name__)


def declared_type_of(definition: ComponentDefinition) -> type[Any] | None:
    """Return the type a definition produces without importing anything.

    Factory methods report the class of their return annotation. Definitions
    declared only by class name report ``None``: their type needs class loading.
    """
    annotation = declared_annotation_of(definition)
    origin = get_origin(annotation)
    if isinstance(origin, type):
        return origin
    if isinstance(annotation, type):
        return annotation
    return None


def declared_annotation_of(definition: ComponentDefinition) -> Any:
    """Like ``declared_type_of``, but keep the type arguments of a factory method's return annotation.

    ``def invoices() -> WiringFactory[Invoice]`` reports ``WiringFactory[Invoice]``
    rather than ``WiringFactory``.
    """
    if definition.target_type is not None:
        return definition.target_type
    if definition.instance is not None:
        return type(definition.instance)
    if definition.factory_method is not None:
        return _factory_method_return_annotation(definition.factory_method)
    return None


def _factory_method_return_annotation(factory_method: Callable[..., Any]) -> Any:
    try:
        return get_type_hints(factory_method).get("return")
    except (NameError, TypeError, AttributeError):
        logger.debug("Cannot read return annotation of factory method %r", factory_method)
        return None


class _DefinitionLookup:
    _definitions: Mapping[str, ComponentDefinition]

    def list_definitions(self) -> list[tuple[str, ComponentDefinition]]:
        """Return ``(name, definition)`` pairs in registration order."""
        return list(self._definitions.items())

    def definition_names(self) -> list[str]:
        return list(self._definitions)

    def contains_definition(self, name: str) -> bool:
        return name in self._definitions

    def get_definition(self, name: str) -> ComponentDefinition:
        """Get a definition by name.

        Args:
            name: Definition name to look up.

        Raises:
            NoSuchDefinitionError: If no definition is registered under ``name``.

        """
        try:
            return self._definitions[name]
        except KeyError:
            raise NoSuchDefinitionError(name) from None

    def get_declared_type(self, name: str) -> type[Any] | None:
        """Return the statically known type of a definition, if any.

        Args:
            name: Definition name to look up.

        """
        return declared_type_of(self.get_definition(name))

    def get_declared_annotation(self, name: str) -> Any:
        """Return the static type information of a definition with its type arguments, if any."""
        return declared_annotation_of(self.get_definition(name))

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


class RegistrySnapshot(_DefinitionLookup):
    """Read-only view of the definitions a container runs with after assembly."""

    def __init__(self, definitions: Mapping[str, ComponentDefinition]) -> None:
        self._definitions = MappingProxyType(dict(definitions))


class DefinitionRegistry(_DefinitionLookup):
    """Store component definitions by unique name while a container is assembled.

    Names are unique: registering a second definition under an existing name
    raises ``DuplicateDefinitionError`` and never overwrites. Registration order
    is preserved and drives eager singleton instantiation.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, ComponentDefinition] = {}

    @dataclass(frozen=True, slots=True)
    class Snapshot:
        """Capture registry state for transactional rollback."""

        definitions: dict[str, ComponentDefinition]

    def snapshot(self) -> Snapshot:
        """Capture current definitions for rollback."""
        return self.Snapshot(definitions=dict(self._definitions))

    def restore(self, snapshot: Snapshot) -> None:
        """Restore definitions from a previous snapshot.

        Args:
            snapshot: Previously captured snapshot state to restore into the registry.

        """
        self._definitions = dict(snapshot.definitions)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Apply every registration made inside the block, or none of them."""
        snapshot = self.snapshot()
        try:
            yield
        except BaseException:
            self.restore(snapshot)
            raise

    def freeze(self) -> RegistrySnapshot:
        """Return an immutable snapshot of the current definitions."""
        return RegistrySnapshot(self._definitions)

    def register_definition(self, name: str, definition: ComponentDefinition) -> None:
        """Register a definition under ``name``.

        Args:
            name: Unique definition name; must equal ``definition.name``.
            definition: Definition to store.

        Raises:
            DuplicateDefinitionError: If ``name`` is already registered.
            InvalidDefinitionError: If ``name`` differs from the definition's name.

        """
        if name != definition.name:
            msg = f"Cannot register definition '{definition.name}' under a different name '{name}'."
            raise InvalidDefinitionError(msg)
        if name in self._definitions:
            raise DuplicateDefinitionError(name)
        self._definitions[name] = definition
        logger.debug("Registered %s definition '%s'", definition.source.value, name)

    def add_concrete(
        self,
        concrete_type: type[Any],
        *,
        name: str | None = None,
        scope: Scope = Scope.SINGLETON,
        lazy: bool = False,
        autowire: AutowireMode = AutowireMode.CONSTRUCTOR,
    ) -> ComponentDefinition:
        """Register a class the container instantiates itself.

        Args:
            concrete_type: Class to instantiate.
            name: Definition name; defaults to the lower-camel class name.
            scope: Singleton or prototype.
            lazy: Skip eager instantiation of singletons during assembly.
            autowire: How constructor arguments and attributes are resolved.

        """
        if not inspect.isclass(concrete_type):
            msg = f"Concrete registrations require a class, got {concrete_type!r}."
            raise InvalidDefinitionError(msg)
        definition = ComponentDefinition(
            name=name or derive_name(concrete_type),
            target_type=concrete_type,
            scope=scope,
            lazy=lazy,
            autowire=autowire,
        )
        self.register_definition(definition.name, definition)
        return definition

    def add_class_name(
        self,
        class_name: str,
        *,
        name: str,
        scope: Scope = Scope.SINGLETON,
        lazy: bool = False,
        autowire: AutowireMode = AutowireMode.CONSTRUCTOR,
    ) -> ComponentDefinition:
        """Register a class by its dotted import path, loaded on demand."""
        definition = ComponentDefinition(
            name=name,
            class_name=class_name,
            scope=scope,
            lazy=lazy,
            autowire=autowire,
        )
        self.register_definition(definition.name, definition)
        return definition

    def add_factory_method(
        self,
        factory_method: Callable[..., Any],
        *,
        name: str | None = None,
        scope: Scope = Scope.SINGLETON,
        lazy: bool = False,
    ) -> ComponentDefinition:
        """Register a callable whose return value is the component.

        Parameters of ``factory_method`` are autowired like constructor
        parameters; its return annotation is the definition's declared type.

        Args:
            factory_method: Callable producing the component.
            name: Definition name; defaults to the callable's ``__name__``.
            scope: Singleton or prototype.
            lazy: Skip eager instantiation of singletons during assembly.

        """
        if not callable(factory_method):
            msg = f"Factory methods must be callable, got {factory_method!r}."
            raise InvalidDefinitionError(msg)
        definition_name = name or getattr(factory_method, "__name__", None)
        if not definition_name or definition_name == "<lambda>":
            msg = f"Cannot infer a definition name for {factory_method!r}; pass name=..."
            raise InvalidDefinitionError(msg)
        definition = ComponentDefinition(
            name=definition_name,
            factory_method=factory_method,
            scope=scope,
            lazy=lazy,
            source=DefinitionSource.FACTORY_METHOD,
        )
        self.register_definition(definition.name, definition)
        return definition

    def add_instance(self, instance: Any, *, name: str) -> ComponentDefinition:
        """Register a pre-built singleton used as-is."""
        if instance is None:
            msg = f"Cannot register None as instance '{name}'."
            raise InvalidDefinitionError(msg)
        definition = ComponentDefinition(
            name=name,
            instance=instance,
            autowire=AutowireMode.NO,
            source=DefinitionSource.INSTANCE,
        )
        self.register_definition(definition.name, definition)
        return definition

    @overload
    def component(self, concrete_type: C, /) -> C: ...

    @overload
    def component(
        self,
        *,
        name: str | None = None,
        scope: Scope = Scope.SINGLETON,
        lazy: bool = False,
        autowire: AutowireMode = AutowireMode.CONSTRUCTOR,
    ) -> Callable[[C], C]: ...

    def component(
        self,
        concrete_type: C | None = None,
        /,
        *,
        name: str | None = None,
        scope: Scope = Scope.SINGLETON,
        lazy: bool = False,
        autowire: AutowireMode = AutowireMode.CONSTRUCTOR,
    ) -> C | Callable[[C], C]:
        """Register a class through decorator syntax.

        Examples:
            .. code-block:: python

                @registry.component(scope=Scope.PROTOTYPE)
                class Session: ...

        """

        def decorator(cls: C) -> C:
            self.add_concrete(cls, name=name, scope=scope, lazy=lazy, autowire=autowire)
            return cls

        if concrete_type is not None:
            return decorator(concrete_type)
        return decorator

    def factory_method(
        self,
        *,
        name: str | None = None,
        scope: Scope = Scope.SINGLETON,
        lazy: bool = False,
    ) -> Callable[[F], F]:
        """Register a function through decorator syntax.

        Examples:
            .. code-block:: python

                @registry.factory_method()
                def order_factory() -> OrderFactory:
                    return OrderFactory()

        """

        def decorator(func: F) -> F:
            self.add_factory_method(func, name=name, scope=scope, lazy=lazy)
            return func

        return decorator
