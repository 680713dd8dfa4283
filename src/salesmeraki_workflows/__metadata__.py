"""Distribution metadata read from the installed salesmeraki-workflows package."""

from __future__ import annotations

import importlib.metadata

__all__ = ("__version__", "__project__")

__version__ = importlib.metadata.version("salesmeraki-workflows")
"""Version of the project."""
__project__ = importlib.metadata.metadata("salesmeraki-workflows")["Name"]
"""Name of the project."""
