"""Barbican reference-resolution cache."""

__version__ = "0.1.0"
