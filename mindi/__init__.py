"""mindi public objects and functions."""

from ._decorators import annotate, injectable, post_construct
from ._exceptions import (
    CyclicDependencyError,
    InvalidRegistrationTypeError,
    MalformedProviderError,
    MindiError,
    UnresolvedTokenError,
)
from ._forward_ref import ForwardRef, forward_ref, resolve_forward_ref
from ._injector import Injector
from ._marker import Inject, InjectionSpec
from ._metadata import ClassMetadata, MetadataRegistry, registry
from ._provider import (
    ClassProvider,
    ExistingProvider,
    FactoryProvider,
    Provider,
    ProviderArg,
    ValueProvider,
)
from ._token import Token
from ._types import NOT_SET

__all__ = [
    "NOT_SET",
    "ClassMetadata",
    "ClassProvider",
    "CyclicDependencyError",
    "ExistingProvider",
    "FactoryProvider",
    "ForwardRef",
    "Inject",
    "InjectionSpec",
    "Injector",
    "InvalidRegistrationTypeError",
    "MalformedProviderError",
    "MetadataRegistry",
    "MindiError",
    "Provider",
    "ProviderArg",
    "Token",
    "UnresolvedTokenError",
    "ValueProvider",
    "annotate",
    "forward_ref",
    "injectable",
    "post_construct",
    "registry",
    "resolve_forward_ref",
]
