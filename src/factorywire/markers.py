from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, Any, TypeVar, Union, get_args, get_origin

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)
POST_CONSTRUCT_ATTR = "__factorywire_post_construct__"
PROTOTYPE_COMPONENT_ATTR = "__factorywire_prototype_component__"


class InjectedMarker:
    """A marker used to indicate an attribute should be injected by the container.

    Used to identify class attributes that the injection engine fills after an
    instance has been constructed.
    """


if TYPE_CHECKING:
    Injected = Union[T, T]  # noqa: UP007,PYI016
    """Mark a class attribute for container-driven field injection.

    At runtime ``Injected[T]`` becomes ``Annotated[T, InjectedMarker()]``.

    Examples:
        .. code-block:: python

            class Invoice:
                ledger: Injected[Ledger]

                def __init__(self, number: str) -> None:
                    self.number = number
    """

else:

    class Injected:
        """Mark a class attribute for container-driven field injection.

        At runtime ``Injected[T]`` resolves to ``Annotated[T, InjectedMarker()]``.
        The attribute is resolved by its name first and by ``T`` second.

        Examples:
            .. code-block:: python

                class Invoice:
                    ledger: Injected[Ledger]

                    def __init__(self, number: str) -> None:
                        self.number = number

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, InjectedMarker]:
            # Annotated flattens nesting, so metadata already on ``item`` is kept.
            return Annotated[item, InjectedMarker()]  # type: ignore[valid-type]


def is_injected_annotation(annotation: Any) -> bool:
    """Return True when annotation is Annotated[..., InjectedMarker()]."""
    if get_origin(annotation) is not Annotated:
        return False
    _, *metadata = get_args(annotation)
    return any(isinstance(entry, InjectedMarker) for entry in metadata)


def strip_injected_annotation(annotation: Any) -> Any:
    """Return the dependency type hidden behind ``Injected[...]`` or ``Annotated[...]``."""
    if get_origin(annotation) is Annotated:
        return get_args(annotation)[0]
    return annotation


def post_construct(method: F) -> F:
    """Mark a method to run once dependencies have been injected.

    Hooks run for container-built components and for instances passed through
    ``WiringBridge.wire``, base-class hooks first.
    """
    setattr(method, POST_CONSTRUCT_ATTR, True)
    return method


def is_post_construct(candidate: object) -> bool:
    return callable(candidate) and getattr(candidate, POST_CONSTRUCT_ATTR, False) is True


def prototype_component(cls: C) -> C:
    """Document that a class is manufactured by a wiring factory.

    The marker has no runtime effect on registration: the factory that creates
    the instances is what causes the prototype definition to be registered.
    """
    setattr(cls, PROTOTYPE_COMPONENT_ATTR, True)
    return cls
