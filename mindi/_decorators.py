from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol, TypedDict, TypeGuard, TypeVar, overload

from ._provider import ProviderArg

T = TypeVar("T")
ClassT = TypeVar("ClassT", bound=type)
CallableT = TypeVar("CallableT", bound=Callable[..., Any])


class InjectableMetadata(TypedDict):
    """Providers scoped to an injector built from the class."""

    providers: list[ProviderArg]


@overload
def injectable(cls: ClassT) -> ClassT: ...


@overload
def injectable(
    *, providers: Iterable[ProviderArg] | None = None
) -> Callable[[ClassT], ClassT]: ...


def injectable(
    cls: ClassT | None = None,
    *,
    providers: Iterable[ProviderArg] | None = None,
) -> Callable[[ClassT], ClassT] | ClassT:
    """Decorator declaring the providers of an injector created from a class.

    See `Injector.from_injectable`.
    """

    def decorator(inner: ClassT) -> ClassT:
        inner.__injectable__ = InjectableMetadata(  # type: ignore[attr-defined]
            providers=list(providers or [])
        )
        return inner

    if cls is None:
        return decorator

    return decorator(cls)


class Injectable(Protocol):
    __injectable__: InjectableMetadata


def is_injectable(cls: Any) -> TypeGuard[type[Injectable]]:
    # Own declaration only, subclasses do not inherit scoped providers.
    return "__injectable__" in getattr(cls, "__dict__", {})


def post_construct(func: CallableT) -> CallableT:
    """Decorator marking a method to be called after injection is complete."""
    func.__post_construct__ = True  # type: ignore[attr-defined]
    return func


def is_post_construct(obj: Any) -> bool:
    return getattr(obj, "__post_construct__", False) is True


def annotate(target: T, *dependencies: Any) -> T:
    """Declare the dependencies of a class or function as a static list."""
    target.__inject__ = list(dependencies)  # type: ignore[attr-defined]
    return target
