"""
Validation utilities for tfmatrix.
"""

from pathlib import Path
from typing import Union


def validate_workspace_dir(workspace_root: Union[str, Path]) -> bool:
    """
    Check if a path is an existing directory that can be scanned.

    Args:
        workspace_root: Path to directory

    Returns:
        True if the directory exists
    """
    path = Path(workspace_root)
    return path.exists() and path.is_dir()
