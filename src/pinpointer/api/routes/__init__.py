"""API route handlers."""

from . import audit, health

__all__ = ["audit", "health"]
