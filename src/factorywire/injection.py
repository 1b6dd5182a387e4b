from __future__ import annotations

import inspect
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from inspect import Parameter
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, get_origin, get_type_hints

from factorywire.definitions import AutowireMode
from factorywire.exceptions import FactoryWireError, InjectionError, PostConstructError
from factorywire.markers import is_injected_annotation, is_post_construct, strip_injected_annotation

if TYPE_CHECKING:
    from factorywire.container import Container

logger = logging.getLogger(__name__)

MISSING: Any = object()
_VARIADIC_KINDS = (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)


class ContainerAware(ABC):
    """Receive the owning container once dependencies have been injected.

    The callback runs for container-built components and for instances passed
    through ``Container.resolve_and_inject``, before ``@post_construct`` hooks.
    """

    @abstractmethod
    def set_container(self, container: Container) -> None: ...


class DependencyResolver(Protocol):
    """Lookup used by the injection engine to obtain dependency values."""

    def resolve_dependency(
        self,
        *,
        name: str,
        annotation: Any,
        required_by: str,
        prefer_name: bool,
        required: bool,
    ) -> Any: ...


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """A constructor or factory-method parameter the container may supply."""

    name: str
    annotation: Any
    kind: Any
    has_default: bool


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """An annotated class attribute the container may fill."""

    name: str
    annotation: Any


@dataclass(frozen=True, slots=True)
class InjectionMetadata:
    """Dependency metadata computed once per class.

    Attributes:
        target: Class the metadata describes.
        injected_fields: Attributes annotated with ``Injected[...]``.
        plain_fields: Other public annotated attributes, filled only by the
            ``BY_NAME`` and ``BY_TYPE`` autowiring modes.
        post_construct_methods: Hook method names, base classes first.

    """

    target: type[Any]
    injected_fields: tuple[FieldSpec, ...]
    plain_fields: tuple[FieldSpec, ...]
    post_construct_methods: tuple[str, ...]


class InjectionEngine:
    """Compute dependency metadata and inject dependencies into instances.

    Metadata is cached per class; the cache is the only shared mutable state
    and is guarded by a lock, so concurrent injections into unrelated
    instances never wait on each other once metadata is warm.
    """

    def __init__(self, resolver: DependencyResolver, container: Container) -> None:
        self._resolver = resolver
        self._container = container
        self._metadata_cache: dict[type[Any], InjectionMetadata] = {}
        self._parameters_cache: dict[Any, tuple[ParameterSpec, ...]] = {}
        self._lock = threading.Lock()

    def metadata_for(self, target: type[Any]) -> InjectionMetadata:
        """Return cached injection metadata for ``target``.

        Raises:
            InjectionError: If annotations of ``target`` cannot be evaluated.

        """
        cached = self._metadata_cache.get(target)
        if cached is not None:
            return cached

        metadata = self._build_metadata(target)
        with self._lock:
            return self._metadata_cache.setdefault(target, metadata)

    def parameters_for(self, callable_obj: Callable[..., Any]) -> tuple[ParameterSpec, ...]:
        """Return the autowirable parameters of a class constructor or function."""
        cached = self._parameters_cache.get(callable_obj)
        if cached is not None:
            return cached

        parameters = self._build_parameters(callable_obj)
        with self._lock:
            return self._parameters_cache.setdefault(callable_obj, parameters)

    def build_call_arguments(
        self,
        callable_obj: Callable[..., Any],
        *,
        required_by: str,
    ) -> tuple[list[Any], dict[str, Any]]:
        """Resolve the arguments needed to call a constructor or factory method.

        Each parameter resolves by type, with its name breaking ties between
        several candidates. Parameters with defaults are skipped when nothing
        matches.

        Args:
            callable_obj: Class or function to be called.
            required_by: Name reported in errors.

        Raises:
            InjectionError: If a required parameter cannot be resolved.

        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in self.parameters_for(callable_obj):
            if parameter.annotation is MISSING and not parameter.has_default:
                msg = (
                    f"Cannot autowire parameter '{parameter.name}' of '{required_by}': "
                    f"the parameter has no type annotation."
                )
                raise InjectionError(msg)

            value = self._resolver.resolve_dependency(
                name=parameter.name,
                annotation=None if parameter.annotation is MISSING else parameter.annotation,
                required_by=required_by,
                prefer_name=False,
                required=not parameter.has_default,
            )
            if value is MISSING:
                continue
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        return args, kwargs

    def inject(
        self,
        instance: Any,
        *,
        autowire: AutowireMode,
        required_by: str,
    ) -> Any:
        """Populate dependencies of an already-constructed instance.

        Fills ``Injected[...]`` attributes (by name, then by type), then plain
        annotated attributes for ``BY_NAME``/``BY_TYPE`` autowiring, then calls
        ``ContainerAware.set_container`` and the ``@post_construct`` hooks.

        Args:
            instance: Object to inject into; mutated in place.
            autowire: Autowiring mode of the instance's definition.
            required_by: Name reported in errors.

        Returns:
            The same ``instance``.

        """
        metadata = self.metadata_for(type(instance))

        for field in metadata.injected_fields:
            value = self._resolver.resolve_dependency(
                name=field.name,
                annotation=field.annotation,
                required_by=required_by,
                prefer_name=True,
                required=True,
            )
            self._assign(instance, field.name, value, required_by=required_by)

        if autowire in (AutowireMode.BY_NAME, AutowireMode.BY_TYPE):
            self._autowire_plain_fields(instance, metadata, autowire=autowire, required_by=required_by)

        if isinstance(instance, ContainerAware):
            instance.set_container(self._container)

        self._run_post_construct(instance, metadata, required_by=required_by)
        return instance

    def _autowire_plain_fields(
        self,
        instance: Any,
        metadata: InjectionMetadata,
        *,
        autowire: AutowireMode,
        required_by: str,
    ) -> None:
        for field in metadata.plain_fields:
            if getattr(instance, field.name, MISSING) is not MISSING:
                continue
            value = self._resolver.resolve_dependency(
                name=field.name,
                annotation=None if autowire is AutowireMode.BY_NAME else field.annotation,
                required_by=required_by,
                prefer_name=autowire is AutowireMode.BY_NAME,
                required=False,
            )
            if value is not MISSING:
                self._assign(instance, field.name, value, required_by=required_by)

    def _run_post_construct(
        self,
        instance: Any,
        metadata: InjectionMetadata,
        *,
        required_by: str,
    ) -> None:
        for method_name in metadata.post_construct_methods:
            try:
                getattr(instance, method_name)()
            except FactoryWireError:
                raise
            except Exception as error:
                msg = f"Post-construct hook '{method_name}' of '{required_by}' failed: {error}"
                raise PostConstructError(msg) from error

    @staticmethod
    def _assign(instance: Any, name: str, value: Any, *, required_by: str) -> None:
        # object.__setattr__ also reaches frozen dataclasses.
        try:
            object.__setattr__(instance, name, value)
        except (AttributeError, TypeError) as error:
            msg = f"Cannot inject attribute '{name}' into '{required_by}': {error}"
            raise InjectionError(msg) from error

    def _build_metadata(self, target: type[Any]) -> InjectionMetadata:
        try:
            hints = get_type_hints(target, include_extras=True)
        except (NameError, TypeError) as error:
            msg = f"Cannot compute dependency metadata for '{target.__qualname__}': {error}"
            raise InjectionError(msg) from error

        injected_fields: list[FieldSpec] = []
        plain_fields: list[FieldSpec] = []
        for name, annotation in hints.items():
            if get_origin(annotation) is ClassVar or annotation is ClassVar:
                continue
            if is_injected_annotation(annotation):
                injected_fields.append(FieldSpec(name=name, annotation=strip_injected_annotation(annotation)))
            elif not name.startswith("_"):
                plain_fields.append(FieldSpec(name=name, annotation=strip_injected_annotation(annotation)))

        post_construct_methods: list[str] = []
        for klass in reversed(target.__mro__):
            for name, value in vars(klass).items():
                if is_post_construct(value) and name not in post_construct_methods:
                    post_construct_methods.append(name)

        return InjectionMetadata(
            target=target,
            injected_fields=tuple(injected_fields),
            plain_fields=tuple(plain_fields),
            post_construct_methods=tuple(post_construct_methods),
        )

    def _build_parameters(self, callable_obj: Callable[..., Any]) -> tuple[ParameterSpec, ...]:
        try:
            signature = inspect.signature(callable_obj)
        except (TypeError, ValueError):
            return ()

        hints_source = callable_obj.__init__ if inspect.isclass(callable_obj) else callable_obj
        try:
            hints = get_type_hints(hints_source, include_extras=True)
        except NameError as error:
            name = getattr(callable_obj, "__qualname__", repr(callable_obj))
            msg = f"Cannot compute constructor dependencies for '{name}': {error}"
            raise InjectionError(msg) from error
        except TypeError:
            hints = {}

        return tuple(
            ParameterSpec(
                name=parameter.name,
                annotation=strip_injected_annotation(hints.get(parameter.name, MISSING)),
                kind=parameter.kind,
                has_default=parameter.default is not Parameter.empty,
            )
            for parameter in signature.parameters.values()
            if parameter.kind not in _VARIADIC_KINDS
        )
