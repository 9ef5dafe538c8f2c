from __future__ import annotations

from typing import Generic

from ._types import T


class Token(Generic[T]):
    """An injection key for values that have no class of their own.

    Tokens compare by identity, so two tokens with the same name are still
    different keys.

    Example:
        >>> DATABASE_URL: Token[str] = Token("database_url")
        >>> injector = Injector([ValueProvider(provide=DATABASE_URL, use_value="sqlite://")])
        >>> injector.get(DATABASE_URL)
        'sqlite://'
    """

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Token({self._name})"
