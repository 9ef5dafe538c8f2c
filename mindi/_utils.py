"""Shared mindi utils module."""

from __future__ import annotations

import inspect
import re
from typing import Any

from typing_extensions import get_args, get_origin

from ._forward_ref import ForwardRef
from ._token import Token


def get_full_qualname(obj: Any) -> str:
    """Get the fully qualified name of an object."""
    # Get module and qualname with defaults to handle non-types directly
    module = getattr(obj, "__module__", type(obj).__module__)
    qualname = getattr(obj, "__qualname__", type(obj).__qualname__)

    origin = get_origin(obj)
    # If origin exists, handle generics recursively
    if origin:
        args = ", ".join(get_token_name(arg) for arg in get_args(obj))
        return f"{get_full_qualname(origin)}[{args}]"

    # Substitute standard library prefixes for clarity
    full_qualname = f"{module}.{qualname}"
    return re.sub(
        r"\b(builtins|typing|typing_extensions|collections\.abc|types)\.",
        "",
        full_qualname,
    )


def get_token_name(token: Any) -> str:
    """Get a display name for an injection token."""
    if isinstance(token, (Token, ForwardRef)):
        return repr(token)
    if inspect.isclass(token) or inspect.isfunction(token) or get_origin(token):
        return get_full_qualname(token)
    return repr(token)
