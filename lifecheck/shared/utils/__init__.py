"""Shared utilities for lifecheck."""
from .rates import percentage

__all__ = ["percentage"]
