"""Common middleware for Fest."""

from .observability import StructlogContextMiddleware

__all__ = ["StructlogContextMiddleware"]
