"""Dependency license policy checker."""

__version__ = "0.1.0"
