from __future__ import annotations

from typing import Any


class FactoryWireError(Exception):
    """Represent a base class for all factorywire-specific failures.

    Catch this type when you want to handle any factorywire error path without
    matching each concrete exception class individually.
    """


class InvalidDefinitionError(FactoryWireError):
    """Signal a malformed component definition or registration call.

    Raised when a definition declares zero or several construction sources, or
    when registration helpers receive arguments they cannot turn into a
    definition (for example a missing name for a class-name registration).
    """


class DuplicateDefinitionError(FactoryWireError):
    """Signal that a definition name is already taken in the registry.

    Raised by ``DefinitionRegistry.register_definition`` and by the wiring
    factory scanner when the name derived for a product type collides with an
    existing definition. During assembly this error is fatal: the registry is
    restored and the container stays unassembled.

    Typical fixes include renaming the pre-existing definition or removing the
    second factory that manufactures the same product type.
    """

    def __init__(self, name: str, *, factory_name: str | None = None) -> None:
        self.name = name
        self.factory_name = factory_name
        if factory_name is None:
            msg = f"A definition named '{name}' is already registered."
        else:
            msg = (
                f"Trying to register a definition for a synthetic prototype component "
                f"named '{name}' due to the wiring factory '{factory_name}', "
                f"but a definition with this name already exists."
            )
        super().__init__(msg)


class TypeResolutionError(FactoryWireError):
    """Signal that a wiring factory's product type cannot be resolved.

    Raised when a class subclasses ``WiringFactory`` but its generic parameter
    is never bound to a concrete class, for example when a generic support
    base is registered directly. Fatal at assembly time.

    Typical fix is parameterizing the factory base (``WiringFactorySupport[Order]``)
    or declaring ``product_type = Order`` on the factory class.
    """

    def __init__(self, factory_type: Any, *, definition_name: str | None = None) -> None:
        self.factory_type = factory_type
        self.definition_name = definition_name
        factory_repr = getattr(factory_type, "__qualname__", repr(factory_type))
        msg = f"Wiring factory '{factory_repr}' does not bind its product type to a concrete class."
        if definition_name is not None:
            msg = f"{msg} Registered as definition '{definition_name}'."
        super().__init__(msg)


class ClassResolutionError(FactoryWireError):
    """Signal that a definition's class name cannot be loaded.

    The wiring factory scanner treats this as "not a factory" and skips the
    definition. Runtime resolution of the same definition propagates it.
    """

    def __init__(self, class_name: str, *, reason: str | None = None) -> None:
        self.class_name = class_name
        msg = f"Cannot load class '{class_name}'."
        if reason:
            msg = f"{msg} {reason}"
        super().__init__(msg)


class InjectionError(FactoryWireError):
    """Signal that dependencies of an instance could not be resolved or injected.

    Raised synchronously by ``Container.get``, ``Container.resolve_and_inject``
    and ``WiringBridge.wire``. Nothing is retried.
    """


class NoSuchDefinitionError(InjectionError):
    """Signal that no definition matches a requested name or type."""

    def __init__(self, key: Any, *, required_by: str | None = None) -> None:
        self.key = key
        self.required_by = required_by
        key_repr = key if isinstance(key, str) else getattr(key, "__qualname__", repr(key))
        msg = f"No definition found for '{key_repr}'."
        if required_by is not None:
            msg = f"{msg} Required by '{required_by}'."
        super().__init__(msg)


class AmbiguousDefinitionError(InjectionError):
    """Signal that several definitions match a requested type.

    Typical fix is naming the injection target after one of the candidates so
    name-based resolution picks it.
    """

    def __init__(self, key: Any, candidates: list[str], *, required_by: str | None = None) -> None:
        self.key = key
        self.candidates = candidates
        self.required_by = required_by
        key_repr = getattr(key, "__qualname__", repr(key))
        formatted = ", ".join(f"'{name}'" for name in candidates)
        msg = f"Several definitions match '{key_repr}': {formatted}."
        if required_by is not None:
            msg = f"{msg} Required by '{required_by}'."
        super().__init__(msg)


class PostConstructError(InjectionError):
    """Signal that a ``@post_construct`` hook raised."""


class ContainerStateError(FactoryWireError):
    """Signal a container lifecycle operation in the wrong state.

    Raised when ``assemble`` is called twice or on a closed container.
    """


class ContainerNotAssembledError(ContainerStateError):
    """Signal resolution or wiring before the container finished assembling.

    Typical fix is calling ``container.assemble()`` (or entering the container
    as a context manager) before resolving components or invoking factories.
    """
