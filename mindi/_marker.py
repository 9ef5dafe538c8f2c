"""Injection specs and the `Inject` marker."""

from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass, field
from typing import Annotated, Any, get_args, get_origin

from ._types import NOT_SET


@dataclass(frozen=True, slots=True)
class InjectionSpec:
    """How a single dependency edge is resolved."""

    token: Any = NOT_SET
    optional: bool = field(default=False, kw_only=True)
    lazy: bool = field(default=False, kw_only=True)
    self_only: bool = field(default=False, kw_only=True)
    skip_self: bool = field(default=False, kw_only=True)

    @property
    def has_token(self) -> bool:
        return self.token is not NOT_SET

    def replace(self, **changes: Any) -> InjectionSpec:
        return dataclasses.replace(self, **changes)


class Inject(InjectionSpec):
    """Marker declaring an injected parameter or property.

    Used as `Annotated` metadata or as a parameter default. Without a token
    the annotated type is the token.

    Example:
        >>> class Service:
        ...     repo: Annotated[Repository, Inject(lazy=True)]
        ...
        ...     def __init__(self, db: Annotated[Database, Inject()]) -> None: ...
    """

    __slots__ = ()

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, cls()]


def is_marker(obj: Any) -> bool:
    return isinstance(obj, InjectionSpec)


def to_spec(arg: Any) -> InjectionSpec:
    """Turn a bare token into an injection spec."""
    if is_marker(arg):
        return arg
    return InjectionSpec(token=arg)


def unwrap_annotation(annotation: Any) -> tuple[Any, InjectionSpec | None]:
    """Split `Annotated[T, Inject(...)]` into `T` and its marker."""
    if get_origin(annotation) is not Annotated:
        return annotation, None

    origin, *metadata = get_args(annotation)
    markers = [item for item in metadata if is_marker(item)]
    if not markers:
        return annotation, None
    return origin, markers[-1]


def spec_for_annotation(annotation: Any, default: Any = NOT_SET) -> InjectionSpec | None:
    """Build the spec for an annotated member, or `None` if it is not injected."""
    interface, marker = unwrap_annotation(annotation)
    if marker is None and is_marker(default):
        marker = default
    if marker is None:
        return None
    if marker.has_token:
        return marker
    if interface is inspect.Parameter.empty:
        raise TypeError(
            "Cannot infer the injection token of a marker without a token "
            "or an annotation."
        )
    return marker.replace(token=interface)
