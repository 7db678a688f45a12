"""Habitta home system prediction and confidence engine."""

__version__ = "0.1.0"
