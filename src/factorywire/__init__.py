from factorywire.assembly import AssemblyContext, DefinitionPostProcessor
from factorywire.class_loading import ClassLoader
from factorywire.configuration import enable_wiring_factories
from factorywire.container import Container
from factorywire.definitions import AutowireMode, ComponentDefinition, DefinitionSource, Scope
from factorywire.exceptions import (
    AmbiguousDefinitionError,
    ClassResolutionError,
    ContainerNotAssembledError,
    ContainerStateError,
    DuplicateDefinitionError,
    FactoryWireError,
    InjectionError,
    InvalidDefinitionError,
    NoSuchDefinitionError,
    PostConstructError,
    TypeResolutionError,
)
from factorywire.injection import ContainerAware
from factorywire.markers import Injected, post_construct, prototype_component
from factorywire.naming import derive_name
from factorywire.registry import DefinitionRegistry, RegistrySnapshot
from factorywire.scanner import WiringFactoryPostProcessor
from factorywire.synthesis import synthesize_definition
from factorywire.type_resolution import FactoryOf, NotAFactory, classify, resolve_product_type
from factorywire.wiring import WiringBridge, WiringFactory, WiringFactorySupport

__all__ = [
    "AmbiguousDefinitionError",
    "AssemblyContext",
    "AutowireMode",
    "ClassLoader",
    "ClassResolutionError",
    "ComponentDefinition",
    "Container",
    "ContainerAware",
    "ContainerNotAssembledError",
    "ContainerStateError",
    "DefinitionPostProcessor",
    "DefinitionRegistry",
    "DefinitionSource",
    "DuplicateDefinitionError",
    "FactoryOf",
    "FactoryWireError",
    "Injected",
    "InjectionError",
    "InvalidDefinitionError",
    "NoSuchDefinitionError",
    "NotAFactory",
    "PostConstructError",
    "RegistrySnapshot",
    "Scope",
    "TypeResolutionError",
    "WiringBridge",
    "WiringFactory",
    "WiringFactoryPostProcessor",
    "WiringFactorySupport",
    "classify",
    "derive_name",
    "enable_wiring_factories",
    "post_construct",
    "prototype_component",
    "resolve_product_type",
    "synthesize_definition",
]
