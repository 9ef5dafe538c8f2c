"""Injection metadata of classes and callables.

Each class owns a `ClassMetadata` record holding what it declares itself:
constructor parameter specs, injected properties and post-construct hook
names. The record is either defined explicitly with
`MetadataRegistry.define` or derived from the class on first use:

* constructor parameters from the class's own ``__init__`` signature,
* properties from ``Annotated[T, Inject(...)]`` class annotations,
* hooks from methods decorated with `post_construct`.

Inherited metadata is merged over ``cls.__mro__`` from the root to the leaf,
so a subclass overrides what its ancestors declare.
"""

from __future__ import annotations

import inspect
import weakref
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from typing_extensions import get_annotations

from ._decorators import is_post_construct
from ._marker import InjectionSpec, spec_for_annotation, to_spec
from ._utils import get_full_qualname

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(kw_only=True)
class ClassMetadata:
    # `None` means the class declares no constructor parameters of its own.
    params: list[InjectionSpec] | None = None
    properties: dict[str, InjectionSpec] = field(default_factory=dict)
    post_construct: list[str] = field(default_factory=list)


class MetadataRegistry:
    """Side table of injection metadata keyed by class."""

    def __init__(self) -> None:
        self._metadata: weakref.WeakKeyDictionary[type, ClassMetadata] = (
            weakref.WeakKeyDictionary()
        )

    def define(
        self,
        cls: type,
        *,
        params: Iterable[Any] | None = None,
        properties: Mapping[str, Any] | None = None,
        post_construct: Iterable[str] | None = None,
    ) -> ClassMetadata:
        """Define the own metadata of a class explicitly.

        Fields that are not given keep what is derived from the class itself.
        """
        current = self.get_own(cls)
        metadata = ClassMetadata(
            params=(
                [to_spec(param) for param in params]
                if params is not None
                else current.params
            ),
            properties=(
                {name: to_spec(spec) for name, spec in properties.items()}
                if properties is not None
                else current.properties
            ),
            post_construct=(
                list(post_construct)
                if post_construct is not None
                else current.post_construct
            ),
        )
        self._metadata[cls] = metadata
        return metadata

    def forget(self, cls: type) -> None:
        """Drop the metadata of a class so it is derived again on next use."""
        self._metadata.pop(cls, None)

    def get_own(self, cls: type) -> ClassMetadata:
        try:
            return self._metadata[cls]
        except KeyError:
            pass
        metadata = collect_class_metadata(cls)
        self._metadata[cls] = metadata
        return metadata

    def get_inherited(self, cls: type) -> list[ClassMetadata]:
        """Return the own metadata of each class in the hierarchy, root first."""
        return [self.get_own(base) for base in reversed(cls.__mro__) if base is not object]

    def get_params(self, cls: type) -> list[InjectionSpec]:
        """Return the constructor injection specs of a class."""
        for base in cls.__mro__:
            if base is object:
                break
            params = self.get_own(base).params
            if params is not None:
                return list(params)
            if "__init__" in base.__dict__ or "__inject__" in base.__dict__:
                break
        return get_static_specs(cls) or []

    def get_properties(self, cls: type) -> dict[str, InjectionSpec]:
        properties: dict[str, InjectionSpec] = {}
        for metadata in self.get_inherited(cls):
            properties.update(metadata.properties)
        return properties

    def get_post_construct(self, cls: type) -> list[str]:
        names: list[str] = []
        for metadata in self.get_inherited(cls):
            for name in metadata.post_construct:
                # A redeclared hook runs once, at its most derived position.
                if name in names:
                    names.remove(name)
                names.append(name)
        return names


registry = MetadataRegistry()


def collect_class_metadata(cls: type) -> ClassMetadata:
    """Derive the own metadata of a class from its definition."""
    params = None
    init = cls.__dict__.get("__init__")
    if inspect.isfunction(init):
        params = collect_params(init, skip_first=True)

    properties: dict[str, InjectionSpec] = {}
    for name, annotation in get_annotations(cls, eval_str=True).items():
        spec = spec_for_annotation(annotation)
        if spec is not None:
            properties[name] = spec

    post_construct = [
        name for name, value in cls.__dict__.items() if is_post_construct(value)
    ]

    return ClassMetadata(
        params=params, properties=properties, post_construct=post_construct
    )


def collect_params(
    call: Callable[..., Any], *, skip_first: bool = False
) -> list[InjectionSpec] | None:
    """Derive positional injection specs from a signature.

    Returns `None` when a parameter has neither an annotation, a marker nor a
    default, or when the callable takes `*args`, as the signature does not
    tell what to inject.
    """
    parameters = list(inspect.signature(call, eval_str=True).parameters.values())
    if skip_first:
        parameters = parameters[1:]

    specs: list[InjectionSpec] = []
    for parameter in parameters:
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return None
        if parameter.kind not in _POSITIONAL_KINDS:
            break
        spec = spec_for_annotation(parameter.annotation, parameter.default)
        if spec is None:
            if parameter.default is not inspect.Parameter.empty:
                break
            if parameter.annotation is inspect.Parameter.empty:
                return None
            spec = InjectionSpec(token=parameter.annotation)
        specs.append(spec)
    return specs


def get_static_specs(target: Any) -> list[InjectionSpec] | None:
    """Read the `__inject__` list, or the function returning it, of a target."""
    inject = getattr(target, "__inject__", None)
    if inject is None:
        return None
    if callable(inject):
        inject = inject()
    if not isinstance(inject, (list, tuple)):
        return []
    return [to_spec(item) for item in inject]


def get_callable_specs(call: Callable[..., Any]) -> list[InjectionSpec]:
    """Return the injection specs of a function's parameters."""
    specs = get_static_specs(call)
    if specs is not None:
        return specs
    specs = collect_params(call)
    if specs is None:
        raise TypeError(
            f"Cannot infer the dependencies of `{get_full_qualname(call)}`. "
            "Annotate its parameters or declare them with `annotate`."
        )
    return specs
