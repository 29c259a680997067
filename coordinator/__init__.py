"""Atomic swap trade coordinator."""

__version__ = "0.1.0"
