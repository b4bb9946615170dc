"""API routes package."""

from . import analyze
from . import markers

__all__ = ["analyze", "markers"]
