from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from factorywire.exceptions import ContainerNotAssembledError
from factorywire.injection import ContainerAware

if TYPE_CHECKING:
    from factorywire.container import Container

T = TypeVar("T")

logger = logging.getLogger(__name__)


class WiringFactory(Generic[T]):
    """Declare that a component manufactures instances of ``T``.

    When a definition whose type subclasses ``WiringFactory[T]`` is registered
    and wiring factories are enabled, assembly registers a lazy prototype
    definition for ``T`` named after it (``Order`` becomes ``order``), so the
    container knows how to inject the products the factory builds.

    ``T`` may be bound directly, through a generic base such as
    ``WiringFactorySupport[T]``, or several subclasses up the chain. Factories
    that cannot express ``T`` generically may set ``product_type`` instead.
    """

    product_type: ClassVar[type[Any] | None] = None


class WiringBridge:
    """Run the container's injection pass against an instance built by hand.

    The bridge holds no mutable state, so it can be shared by threads calling
    the same factory concurrently.
    """

    __slots__ = ("_container",)

    def __init__(self, container: Container) -> None:
        self._container = container

    def wire(self, instance: T) -> T:
        """Inject dependencies into ``instance`` and run its post-construct hooks.

        Args:
            instance: Fully constructed object, typically a factory product.

        Returns:
            The same ``instance``.

        Raises:
            InjectionError: If a dependency cannot be resolved or a hook fails.

        """
        logger.debug("Wiring factory-made %s instance", type(instance).__qualname__)
        return self._container.resolve_and_inject(instance)


class WiringFactorySupport(WiringFactory[T], ContainerAware):
    """Base class for wiring factories.

    Subclasses construct their product however they like and return
    ``self.wire(product)``:

    Examples:
        .. code-block:: python

            class InvoiceFactory(WiringFactorySupport[Invoice]):
                def make(self, number: str) -> Invoice:
                    return self.wire(Invoice(number))

    """

    _wiring_bridge: WiringBridge | None = None

    def set_container(self, container: Container) -> None:
        self._wiring_bridge = WiringBridge(container)

    def wire(self, instance: T) -> T:
        """Inject the container's dependencies into a freshly built product.

        Raises:
            ContainerNotAssembledError: If the factory was not obtained from a
                container.
            InjectionError: If the product's dependencies cannot be resolved.

        """
        if self._wiring_bridge is None:
            msg = (
                f"{type(self).__qualname__} has no container; obtain the factory from an "
                f"assembled container before calling wire()."
            )
            raise ContainerNotAssembledError(msg)
        return self._wiring_bridge.wire(instance)
