"""
Security module for tfmatrix.

This module provides validation for operator-supplied input (target paths,
git revisions, actor names) and for arguments handed to subprocesses.
"""

from .sanitizer import InputSanitizer, SecurityError

__all__ = ["InputSanitizer", "SecurityError"]
