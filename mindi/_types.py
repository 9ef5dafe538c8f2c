"""Shared mindi types."""

from __future__ import annotations

from typing import TypeVar

from typing_extensions import Sentinel

T = TypeVar("T")

NOT_SET = Sentinel("NOT_SET")
