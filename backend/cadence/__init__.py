"""Cadence - content-based track recommendations."""

__version__ = "0.1.0"
