from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic

from ._types import T


class ForwardRef(Generic[T]):
    """A reference to something that is not defined yet.

    The wrapped function is called on every access of `ref`.
    """

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[], T]) -> None:
        self._fn = fn

    @property
    def ref(self) -> T:
        return self._fn()

    @staticmethod
    def resolve(value: Any) -> Any:
        """Unwrap a forward reference, returning other values unchanged."""
        if isinstance(value, ForwardRef):
            return value.ref
        return value

    def __repr__(self) -> str:
        return f"ForwardRef({self._fn!r})"


def forward_ref(fn: Callable[[], T]) -> ForwardRef[T]:
    """Create a forward reference from a zero-argument function."""
    return ForwardRef(fn)


resolve_forward_ref = ForwardRef.resolve
