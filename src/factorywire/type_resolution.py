"""Resolve the product type a wiring factory manufactures.

A factory declares its product through the generic parameter of
``WiringFactory[T]``. The parameter may be bound directly, through a generic
support base such as ``WiringFactorySupport[T]``, or several subclasses up the
chain. Bindings are collected while walking ``__orig_bases__`` upward and
substituted at every level, so intermediate classes never need to re-declare
the parameter.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar, get_args, get_origin

from factorywire.exceptions import TypeResolutionError
from factorywire.wiring import WiringFactory

PRODUCT_TYPE_ATTR = "product_type"


@dataclass(frozen=True, slots=True)
class NotAFactory:
    """Classification of a type that does not implement ``WiringFactory``."""

    candidate: Any


@dataclass(frozen=True, slots=True)
class FactoryOf:
    """Classification of a wiring factory together with its resolved product type."""

    factory_type: Any
    product_type: type[Any]


FactoryClassification: TypeAlias = NotAFactory | FactoryOf


def is_wiring_factory_type(candidate: object) -> bool:
    """Return whether ``candidate`` is a class implementing ``WiringFactory``."""
    if not isinstance(candidate, type):
        return False
    try:
        return issubclass(candidate, WiringFactory)
    except TypeError:
        return False


def resolve_product_type(factory_type: Any) -> type[Any] | None:
    """Return the class manufactured by a wiring factory type.

    ``factory_type`` may be a factory class or a parameterized alias of one,
    such as the ``WiringFactorySupport[Order]`` return annotation of a factory
    method. An explicit ``product_type`` class attribute anywhere in the MRO
    takes precedence over generic introspection.

    Args:
        factory_type: Runtime class or generic alias of a candidate factory.

    Returns:
        The concrete product class, or ``None`` when ``factory_type`` is not a
        wiring factory at all.

    Raises:
        TypeResolutionError: If ``factory_type`` is a wiring factory whose
            generic parameter is never bound to a concrete class.

    """
    factory_class = get_origin(factory_type) or factory_type
    if not is_wiring_factory_type(factory_class):
        return None

    declared = _declared_product_type(factory_class)
    if declared is not None:
        return declared

    bindings = _alias_bindings(factory_type, factory_class)
    if factory_class is WiringFactory:
        (product_parameter,) = _type_parameters(WiringFactory)
        argument = bindings.get(product_parameter, product_parameter)
    else:
        argument = _resolve_factory_argument(factory_class, bindings)

    product_type = _concrete_class(argument)
    if product_type is None:
        raise TypeResolutionError(factory_type)
    return product_type


def classify(candidate: Any) -> FactoryClassification:
    """Classify a discovered type once, eagerly, for the registry scanner.

    Raises:
        TypeResolutionError: If ``candidate`` is a misconfigured wiring factory.

    """
    product_type = resolve_product_type(candidate)
    if product_type is None:
        return NotAFactory(candidate)
    return FactoryOf(factory_type=candidate, product_type=product_type)


def bind_type_parameters(expression: Any, bindings: Mapping[TypeVar, Any]) -> Any:
    """Replace bound type parameters inside ``expression``.

    ``Box[T]`` with ``{T: int}`` becomes ``Box[int]``. Parameters missing from
    ``bindings`` are left in place.
    """
    if isinstance(expression, TypeVar):
        return bindings.get(expression, expression)

    origin = get_origin(expression)
    arguments = get_args(expression)
    if origin is None or not arguments:
        return expression

    bound = tuple(bind_type_parameters(argument, bindings) for argument in arguments)
    if bound == arguments:
        return expression
    try:
        return origin[bound]
    except TypeError:
        # collections.abc.Callable and similar origins reject a flat tuple.
        return expression


def has_unbound_parameters(expression: Any) -> bool:
    """Return whether ``expression`` is, or still mentions, a type parameter."""
    if isinstance(expression, TypeVar):
        return True
    if get_origin(expression) is None:
        return bool(_type_parameters(expression))
    return any(has_unbound_parameters(argument) for argument in get_args(expression))


def _declared_product_type(factory_type: type[Any]) -> type[Any] | None:
    for klass in factory_type.__mro__:
        declared = klass.__dict__.get(PRODUCT_TYPE_ATTR)
        if declared is None:
            continue
        product_type = _concrete_class(declared)
        if product_type is None:
            raise TypeResolutionError(factory_type)
        return product_type
    return None


def _alias_bindings(factory_type: Any, factory_class: type[Any]) -> dict[TypeVar, Any]:
    arguments = get_args(factory_type)
    parameters = _type_parameters(factory_class)
    if not arguments or len(arguments) != len(parameters):
        return {}
    return dict(zip(parameters, arguments, strict=True))


def _resolve_factory_argument(klass: type[Any], bindings: Mapping[TypeVar, Any]) -> Any | None:
    """Walk generic bases of ``klass`` until ``WiringFactory[...]`` is reached.

    ``bindings`` holds the arguments of ``klass``'s own type parameters as seen
    from the subclass (or alias) that led here.
    """
    for base in _generic_bases(klass):
        origin = get_origin(base) or base
        if origin is Generic or not is_wiring_factory_type(origin):
            continue

        arguments = tuple(bind_type_parameters(argument, bindings) for argument in get_args(base))
        parameters = _type_parameters(origin)

        if origin is WiringFactory:
            if arguments:
                return arguments[0]
            # Unparameterized WiringFactory leaves its own TypeVar unbound.
            return parameters[0]

        base_bindings: dict[TypeVar, Any] = {}
        if arguments and len(arguments) == len(parameters):
            base_bindings = dict(zip(parameters, arguments, strict=True))
        resolved = _resolve_factory_argument(origin, base_bindings)
        if resolved is not None:
            return resolved
    return None


def _generic_bases(klass: type[Any]) -> tuple[Any, ...]:
    return klass.__dict__.get("__orig_bases__", klass.__bases__)


def _type_parameters(klass: Any) -> tuple[TypeVar, ...]:
    return tuple(
        parameter
        for parameter in getattr(klass, "__parameters__", ())
        if isinstance(parameter, TypeVar)
    )


def _concrete_class(argument: Any) -> type[Any] | None:
    if argument is None or isinstance(argument, TypeVar):
        return None
    origin = get_origin(argument)
    if origin is None:
        return argument if isinstance(argument, type) else None
    if has_unbound_parameters(argument):
        return None
    if isinstance(origin, type):
        return origin
    return None
