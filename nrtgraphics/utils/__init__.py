"""Utility helpers for the graphics engine."""

from .logging import configure_logging

__all__ = ["configure_logging"]
