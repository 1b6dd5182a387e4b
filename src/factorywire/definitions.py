from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from factorywire.exceptions import InvalidDefinitionError


class Scope(str, Enum):
    """Define how many instances a definition produces."""

    SINGLETON = "singleton"
    """A single instance is created and shared for the lifetime of the container."""

    PROTOTYPE = "prototype"
    """A new instance is created on every request and never cached."""


class AutowireMode(str, Enum):
    """Select how the container supplies dependencies of a constructed instance."""

    NO = "no"
    """Call the constructor without arguments; only ``Injected[...]`` fields are filled."""

    CONSTRUCTOR = "constructor"
    """Resolve constructor (or factory-method) parameters from the container."""

    BY_NAME = "by_name"
    """Fill annotated attributes whose names match definition names."""

    BY_TYPE = "by_type"
    """Fill annotated attributes whose types match exactly one definition."""


class DefinitionSource(str, Enum):
    """Record how a definition entered the registry."""

    EXPLICIT = "explicit"
    FACTORY_METHOD = "factory_method"
    INSTANCE = "instance"
    SYNTHESIZED = "synthesized"


@dataclass(frozen=True, kw_only=True, slots=True)
class ComponentDefinition:
    """Describe how to construct and scope one named component.

    Exactly one construction source is expected: a target class, a dotted class
    name resolved on demand, a factory method, or a pre-built instance.
    """

    name: str
    """Unique name of the definition within its registry."""

    target_type: type[Any] | None = None
    """Class instantiated by the container, when known statically."""
    class_name: str | None = None
    """Dotted import path of the class, loaded on demand."""
    factory_method: Callable[..., Any] | None = None
    """Callable whose return value is the component."""
    instance: Any = None
    """Pre-built component registered as-is."""

    scope: Scope = Scope.SINGLETON
    lazy: bool = False
    """Lazy singletons are not built during assembly."""
    autowire: AutowireMode = AutowireMode.CONSTRUCTOR
    source: DefinitionSource = DefinitionSource.EXPLICIT
    origin: str | None = None
    """Name of the definition that caused this one to be synthesized."""

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Definition name must be a non-empty string."
            raise InvalidDefinitionError(msg)

        sources = [
            source_name
            for source_name, value in (
                ("target_type", self.target_type),
                ("class_name", self.class_name),
                ("factory_method", self.factory_method),
                ("instance", self.instance),
            )
            if value is not None
        ]
        if len(sources) != 1:
            msg = (
                f"Definition '{self.name}' must declare exactly one of target_type, "
                f"class_name, factory_method or instance, got {sources or 'none'}."
            )
            raise InvalidDefinitionError(msg)

        if self.instance is not None and self.scope is not Scope.SINGLETON:
            msg = f"Instance definition '{self.name}' must be singleton-scoped."
            raise InvalidDefinitionError(msg)

    @property
    def is_singleton(self) -> bool:
        return self.scope is Scope.SINGLETON

    @property
    def is_prototype(self) -> bool:
        return self.scope is Scope.PROTOTYPE
