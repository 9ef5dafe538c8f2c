from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ._utils import get_token_name


class MindiError(Exception):
    pass


class UnresolvedTokenError(MindiError, LookupError):
    def __init__(self, token: Any, path: Sequence[Any] = ()) -> None:
        self.token = token
        self.path = tuple(path)
        message = f"No provider found for `{get_token_name(token)}`."
        if self.path:
            message += f" Resolution path: {format_path(self.path)}."
        super().__init__(message)


class CyclicDependencyError(MindiError, RecursionError):
    def __init__(self, path: Sequence[Any]) -> None:
        self.path = tuple(path)
        super().__init__(f"Cyclic dependency detected: {format_path(self.path)}.")


class MalformedProviderError(MindiError, TypeError):
    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(
            f"The provider for `{get_token_name(token)}` could not be resolved. "
            "A provider must define exactly one of `use_class`, `use_factory`, "
            "`use_value` or `use_existing`."
        )


class InvalidRegistrationTypeError(MindiError, ValueError):
    def __init__(self, kind: str, allowed: Sequence[str]) -> None:
        self.kind = kind
        super().__init__(
            f"`{kind}` is not a valid registration type. "
            f"Only the following types are supported: {', '.join(allowed)}."
        )


def format_path(path: Sequence[Any]) -> str:
    return " -> ".join(get_token_name(token) for token in path)
