"""Wiring factories: build products by hand, let the container inject the rest.

``InvoiceFactory`` builds each ``Invoice`` with a caller-supplied number and
hands it back to the container through ``wire``. The container fills the
invoice's ``Injected[...]`` fields and runs its ``@post_construct`` hook.
"""

from factorywire import (
    Container,
    DefinitionRegistry,
    Injected,
    WiringFactorySupport,
    enable_wiring_factories,
    post_construct,
)


class Ledger:
    def __init__(self) -> None:
        self.entries: list[str] = []


class Invoice:
    ledger: Injected[Ledger]

    def __init__(self, number: str) -> None:
        self.number = number

    @post_construct
    def record(self) -> None:
        self.ledger.entries.append(self.number)


class InvoiceFactory(WiringFactorySupport[Invoice]):
    def make(self, number: str) -> Invoice:
        return self.wire(Invoice(number))


def main() -> None:
    registry = DefinitionRegistry()
    enable_wiring_factories(registry)
    registry.add_concrete(Ledger)
    registry.add_concrete(InvoiceFactory)

    with Container(registry) as container:
        definition = container.definitions.get_definition("invoice")
        print(f"definition={definition.name} scope={definition.scope.value}")  # => definition=invoice scope=prototype

        factory = container.get_by_type(InvoiceFactory)
        first = factory.make("INV-1")
        second = factory.make("INV-2")

        print(f"shared_ledger={first.ledger is second.ledger}")  # => shared_ledger=True
        print(f"entries={container.get('ledger').entries}")  # => entries=['INV-1', 'INV-2']


if __name__ == "__main__":
    main()
