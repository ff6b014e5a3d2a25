"""Compliance and risk domain model."""

__version__ = "0.3.0"
