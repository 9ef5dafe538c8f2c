"""Provider definitions."""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from ._types import NOT_SET

_PROVIDER_KEYS = ("use_class", "use_factory", "use_value", "use_existing")


@dataclass(kw_only=True, eq=False)
class BaseProvider:
    provide: Any
    multi: bool = False
    resolved: Any = field(default=NOT_SET, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self.resolved is not NOT_SET


@dataclass(kw_only=True, eq=False)
class ClassProvider(BaseProvider):
    use_class: Any
    transient: bool = False


@dataclass(kw_only=True, eq=False)
class FactoryProvider(BaseProvider):
    use_factory: Any
    deps: Sequence[Any] | None = None
    transient: bool = False


@dataclass(kw_only=True, eq=False)
class ValueProvider(BaseProvider):
    use_value: Any


@dataclass(kw_only=True, eq=False)
class ExistingProvider(BaseProvider):
    use_existing: Any


@dataclass(kw_only=True, eq=False)
class MalformedProvider(BaseProvider):
    """A mapping that does not describe exactly one provider kind."""

    source: Mapping[str, Any]


Provider = Union[
    ClassProvider, FactoryProvider, ValueProvider, ExistingProvider, MalformedProvider
]
ProviderArg = Union[Provider, type, Mapping[str, Any]]


def provider_from_mapping(mapping: Mapping[str, Any]) -> Provider:
    """Build a provider from a `{"provide": ..., "use_*": ...}` mapping."""
    if "provide" not in mapping:
        raise TypeError(
            f"The provider mapping `{dict(mapping)!r}` has no `provide` key."
        )

    provide = mapping["provide"]
    multi = bool(mapping.get("multi", False))
    kinds = [key for key in _PROVIDER_KEYS if key in mapping]
    if len(kinds) != 1:
        return MalformedProvider(provide=provide, multi=multi, source=mapping)

    kind = kinds[0]
    if kind == "use_class":
        return ClassProvider(
            provide=provide,
            use_class=mapping["use_class"],
            multi=multi,
            transient=bool(mapping.get("transient", False)),
        )
    if kind == "use_factory":
        return FactoryProvider(
            provide=provide,
            use_factory=mapping["use_factory"],
            deps=mapping.get("deps"),
            multi=multi,
            transient=bool(mapping.get("transient", False)),
        )
    if kind == "use_value":
        return ValueProvider(provide=provide, use_value=mapping["use_value"], multi=multi)
    return ExistingProvider(
        provide=provide, use_existing=mapping["use_existing"], multi=multi
    )


def normalize_provider(provider: ProviderArg) -> Provider:
    """Return a registry-owned provider for any accepted provider argument."""
    if inspect.isclass(provider):
        return ClassProvider(provide=provider, use_class=provider)
    if isinstance(provider, BaseProvider):
        # Each registry caches on its own copy.
        return dataclasses.replace(provider, resolved=NOT_SET)  # type: ignore[return-value]
    if isinstance(provider, Mapping):
        return provider_from_mapping(provider)
    raise TypeError(
        f"The provider `{provider!r}` is invalid. Expected a class, a provider "
        "instance or a provider mapping."
    )


def is_multi_entry(provider: Provider) -> bool:
    """Check if the provider is the accumulated entry of a multi token."""
    return provider.multi and isinstance(provider, ValueProvider)


def multi_entry(provide: Any) -> ValueProvider:
    return ValueProvider(provide=provide, use_value=[], multi=True)

