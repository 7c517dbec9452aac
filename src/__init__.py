# src/__init__.py
"""pm-designer: resilient generation core for product marketing assets."""

from pmdesigner.version import __version__

__all__ = ["__version__"]
