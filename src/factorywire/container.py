from __future__ import annotations

import logging
import threading
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, cast, get_origin, overload

from factorywire.assembly import AssemblyContext, DefinitionPostProcessor
from factorywire.class_loading import ClassLoader
from factorywire.definitions import AutowireMode, ComponentDefinition
from factorywire.exceptions import (
    AmbiguousDefinitionError,
    ClassResolutionError,
    ContainerNotAssembledError,
    ContainerStateError,
    InjectionError,
    InvalidDefinitionError,
    NoSuchDefinitionError,
)
from factorywire.injection import MISSING, ContainerAware, InjectionEngine
from factorywire.integrations.pydantic_settings import is_pydantic_settings_subclass
from factorywire.registry import DefinitionRegistry, RegistrySnapshot, declared_type_of

if TYPE_CHECKING:
    from typing_extensions import Self

T = TypeVar("T")

logger = logging.getLogger(__name__)

__all__ = ["Container", "ContainerAware"]


class Container:
    """Assemble component definitions and resolve components from them.

    A container starts from a ``DefinitionRegistry``. ``assemble`` runs the
    registered definition post-processors (for example the wiring factory
    scanner), freezes the registry into a read-only snapshot and, unless
    disabled, instantiates every non-lazy singleton. Afterwards components are
    obtained with ``get``/``get_by_type`` and hand-built instances are wired with
    ``resolve_and_inject``.

    Singletons are created once under a re-entrant lock. Prototypes and
    ``resolve_and_inject`` calls take no container-wide lock, so they may run
    concurrently from any thread.
    """

    def __init__(
        self,
        registry: DefinitionRegistry,
        *,
        class_loader: ClassLoader | None = None,
        eager_singletons: bool = True,
    ) -> None:
        """Initialize a container over ``registry``.

        Args:
            registry: Definitions to assemble. The container becomes the only
                writer of the registry during assembly.
            class_loader: Loader used for definitions declared by class name.
                Defaults to a fresh ``ClassLoader``.
            eager_singletons: Instantiate non-lazy singletons during assembly.

        """
        self._registry = registry
        self._class_loader = class_loader or ClassLoader()
        self._eager_singletons = eager_singletons

        self._snapshot: RegistrySnapshot | None = None
        self._closed = False
        self._singletons: dict[str, Any] = {}
        self._singleton_lock = threading.RLock()
        self._types: dict[str, type[Any] | None] = {}
        self._candidates: dict[type[Any], tuple[str, ...]] = {}
        self._prototypes_by_type: dict[type[Any], ComponentDefinition | None] = {}
        self._injection = InjectionEngine(resolver=self, container=self)

    @property
    def is_assembled(self) -> bool:
        return self._snapshot is not None

    @property
    def class_loader(self) -> ClassLoader:
        return self._class_loader

    def assemble(self) -> None:
        """Run post-processors, freeze the registry and build eager singletons.

        Any error aborts assembly and leaves the container unassembled.

        Raises:
            ContainerStateError: If the container is already assembled or closed.
            TypeResolutionError: If a wiring factory does not bind its product type.
            DuplicateDefinitionError: If a synthesized definition name collides.

        """
        if self._closed:
            msg = "Cannot assemble a closed container."
            raise ContainerStateError(msg)
        if self._snapshot is not None:
            msg = "Container is already assembled."
            raise ContainerStateError(msg)

        logger.debug("Assembling container with %d definitions", len(self._registry))
        context = AssemblyContext(registry=self._registry, class_loader=self._class_loader)
        try:
            with context.transaction():
                for name, post_processor in self._instantiate_post_processors(context):
                    logger.debug("Running definition post-processor %s", name)
                    post_processor.post_process(context)

                self._snapshot = context.freeze()
                if self._eager_singletons:
                    self._instantiate_eager_singletons()
        except BaseException:
            self._reset()
            raise

        logger.info("Container assembled with %d definitions", len(self._snapshot))

    def close(self) -> None:
        """Drop cached singletons; the container cannot be used afterwards."""
        self._reset()
        self._closed = True

    def __enter__(self) -> Self:
        self.assemble()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def definitions(self) -> RegistrySnapshot:
        """Read-only definitions the assembled container runs with."""
        return self._require_snapshot()

    def contains(self, name: str) -> bool:
        return self._require_snapshot().contains_definition(name)

    def type_of(self, name: str) -> type[Any] | None:
        """Return the type produced by a definition, loading its class if needed.

        Raises:
            NoSuchDefinitionError: If ``name`` is not registered.

        """
        snapshot = self._require_snapshot()
        if name in self._types:
            return self._types[name]

        definition = snapshot.get_definition(name)
        resolved = declared_type_of(definition)
        if resolved is None and definition.class_name is not None:
            try:
                resolved = self._class_loader.load_type(definition.class_name)
            except ClassResolutionError:
                logger.debug("Type of definition %s is unknown", name)
        self._types[name] = resolved
        return resolved

    def get(self, name: str) -> Any:
        """Return the component registered under ``name``.

        Singletons are cached; prototypes are created on every call.

        Raises:
            ContainerNotAssembledError: If the container is not assembled.
            NoSuchDefinitionError: If ``name`` is not registered.
            InjectionError: If the component's dependencies cannot be resolved.

        """
        definition = self._require_snapshot().get_definition(name)
        if definition.is_singleton:
            return self._get_singleton(definition)
        return self._create(definition)

    @overload
    def get_by_type(self, dependency: type[T]) -> T: ...

    @overload
    def get_by_type(self, dependency: Any) -> Any: ...

    def get_by_type(self, dependency: Any) -> Any:
        """Return the single component whose type is compatible with ``dependency``.

        Raises:
            NoSuchDefinitionError: If no definition matches.
            AmbiguousDefinitionError: If several definitions match.

        """
        candidates = self._candidate_names(dependency)
        if not candidates:
            raise NoSuchDefinitionError(dependency)
        if len(candidates) > 1:
            raise AmbiguousDefinitionError(dependency, list(candidates))
        return self.get(candidates[0])

    def resolve_and_inject(self, instance: T) -> T:
        """Inject dependencies into an instance the container did not construct.

        Fields annotated ``Injected[...]`` are resolved by name first and by type
        second; ``ContainerAware`` callbacks and ``@post_construct`` hooks run
        afterwards, exactly as for container-built components.

        Args:
            instance: Fully constructed object.

        Returns:
            The same ``instance``.

        Raises:
            ContainerNotAssembledError: If the container is not assembled.
            InjectionError: If a dependency cannot be resolved or a hook fails.

        """
        self._require_snapshot()
        definition = self._definition_for_type(type(instance))
        if definition is None:
            return self._injection.inject(
                instance,
                autowire=AutowireMode.NO,
                required_by=type(instance).__qualname__,
            )
        return self._injection.inject(
            instance,
            autowire=definition.autowire,
            required_by=definition.name,
        )

    def resolve_dependency(
        self,
        *,
        name: str,
        annotation: Any,
        required_by: str,
        prefer_name: bool,
        required: bool,
    ) -> Any:
        """Resolve one dependency for the injection engine.

        With ``prefer_name`` a definition named ``name`` wins when its type is
        compatible with ``annotation``; otherwise candidates are matched by type
        and ``name`` only breaks ties.

        Returns:
            The dependency value, or ``MISSING`` when ``required`` is false and
            nothing matches.

        """
        snapshot = self._require_snapshot()
        expected = _raw_type(annotation)

        if (prefer_name or expected is None) and snapshot.contains_definition(name):
            if self._is_compatible(name, expected):
                return self._get_dependency(name, required_by=required_by)

        if expected is not None:
            candidates = self._candidate_names(expected)
            if len(candidates) == 1:
                return self._get_dependency(candidates[0], required_by=required_by)
            if len(candidates) > 1:
                if name in candidates:
                    return self._get_dependency(name, required_by=required_by)
                raise AmbiguousDefinitionError(expected, list(candidates), required_by=required_by)
            if isinstance(self, expected):
                return self

        if not required:
            return MISSING
        raise NoSuchDefinitionError(expected if expected is not None else name, required_by=required_by)

    def _require_snapshot(self) -> RegistrySnapshot:
        if self._snapshot is None:
            msg = "Container is closed." if self._closed else "Container is not assembled; call assemble() first."
            raise ContainerNotAssembledError(msg)
        return self._snapshot

    def _reset(self) -> None:
        with self._singleton_lock:
            self._snapshot = None
            self._singletons.clear()
            self._types.clear()
            self._candidates.clear()
            self._prototypes_by_type.clear()

    def _instantiate_post_processors(
        self,
        context: AssemblyContext,
    ) -> list[tuple[str, DefinitionPostProcessor]]:
        post_processors: list[tuple[str, DefinitionPostProcessor]] = []
        for name, definition in context.list_definitions():
            definition_type = context.get_declared_type(name)
            if definition_type is None and definition.class_name is not None:
                try:
                    definition_type = context.load_type(definition.class_name)
                except ClassResolutionError:
                    continue
            if not (isinstance(definition_type, type) and issubclass(definition_type, DefinitionPostProcessor)):
                continue

            if not definition.is_singleton:
                msg = f"Definition post-processor '{name}' must be singleton-scoped."
                raise InvalidDefinitionError(msg)

            if definition.instance is not None:
                post_processor = definition.instance
            elif definition.factory_method is not None:
                post_processor = definition.factory_method()
            else:
                post_processor = definition_type()
            self._singletons[name] = post_processor
            post_processors.append((name, cast("DefinitionPostProcessor", post_processor)))
        return post_processors

    def _instantiate_eager_singletons(self) -> None:
        snapshot = self._require_snapshot()
        for name, definition in snapshot.list_definitions():
            if definition.is_singleton and not definition.lazy:
                self.get(name)

    def _get_singleton(self, definition: ComponentDefinition) -> Any:
        cached = self._singletons.get(definition.name, MISSING)
        if cached is not MISSING:
            return cached

        with self._singleton_lock:
            cached = self._singletons.get(definition.name, MISSING)
            if cached is not MISSING:
                return cached
            instance = self._create(definition)
            self._singletons[definition.name] = instance
            return instance

    def _create(self, definition: ComponentDefinition) -> Any:
        name = definition.name
        if definition.instance is not None:
            return definition.instance

        if definition.factory_method is not None:
            args, kwargs = self._injection.build_call_arguments(definition.factory_method, required_by=name)
            instance = definition.factory_method(*args, **kwargs)
            if instance is None:
                msg = f"Factory method of definition '{name}' returned None."
                raise InjectionError(msg)
            return self._injection.inject(instance, autowire=AutowireMode.NO, required_by=name)

        target_type = self.type_of(name)
        if target_type is None:
            # Surface the loading error for class-name definitions.
            target_type = self._class_loader.load_type(cast("str", definition.class_name))

        if is_pydantic_settings_subclass(target_type):
            return target_type()

        if definition.autowire is AutowireMode.CONSTRUCTOR:
            args, kwargs = self._injection.build_call_arguments(target_type, required_by=name)
            instance = target_type(*args, **kwargs)
        else:
            instance = target_type()

        logger.debug("Created %s component %s", definition.scope.value, name)
        return self._injection.inject(instance, autowire=definition.autowire, required_by=name)

    def _candidate_names(self, expected: Any) -> tuple[str, ...]:
        expected_type = _raw_type(expected)
        if expected_type is None:
            return ()
        cached = self._candidates.get(expected_type)
        if cached is not None:
            return cached

        snapshot = self._require_snapshot()
        candidates = tuple(
            name
            for name in snapshot.definition_names()
            if _is_subclass(self.type_of(name), expected_type)
        )
        self._candidates[expected_type] = candidates
        return candidates

    def _definition_for_type(self, target: type[Any]) -> ComponentDefinition | None:
        cached = self._prototypes_by_type.get(target, MISSING)
        if cached is not MISSING:
            return cached

        snapshot = self._require_snapshot()
        found = next(
            (
                definition
                for name, definition in snapshot.list_definitions()
                if definition.is_prototype and self.type_of(name) is target
            ),
            None,
        )
        self._prototypes_by_type[target] = found
        return found

    def _is_compatible(self, name: str, expected: type[Any] | None) -> bool:
        if expected is None:
            return True
        definition_type = self.type_of(name)
        if definition_type is None:
            # Untyped factory methods may match; unloadable class names never do.
            return self._require_snapshot().get_definition(name).class_name is None
        return _is_subclass(definition_type, expected)

    def _get_dependency(self, name: str, *, required_by: str) -> Any:
        try:
            return self.get(name)
        except ClassResolutionError as error:
            msg = f"Cannot resolve dependency '{name}' of '{required_by}': {error}"
            raise InjectionError(msg) from error


def _raw_type(annotation: Any) -> type[Any] | None:
    if annotation is None or annotation is MISSING:
        return None
    origin = get_origin(annotation)
    if isinstance(origin, type):
        return origin
    if isinstance(annotation, type):
        return annotation
    return None


def _is_subclass(candidate: type[Any] | None, expected: type[Any]) -> bool:
    if candidate is None:
        return False
    try:
        return issubclass(candidate, expected)
    except TypeError:
        return False
