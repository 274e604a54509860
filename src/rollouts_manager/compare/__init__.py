"""Normalization and comparison of owned objects."""

from .diff import diff, field_differs
from .normalize import normalize

__all__ = ["diff", "field_differs", "normalize"]
