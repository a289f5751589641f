"""
Configuration management for tfmatrix.

This module handles repository settings and their defaults.
"""

from .settings import Settings
from .defaults import DEFAULT_SETTINGS

__all__ = ["Settings", "DEFAULT_SETTINGS"]
