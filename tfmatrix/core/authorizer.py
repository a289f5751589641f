"""
Operator role lookup.

Roles are read from a JSON file mapping role names to GitHub logins:

    {"applier": ["alice"], "planner": ["alice", "bob"]}
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from ..security.sanitizer import InputSanitizer
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "planner"


def resolve_roles(actor: str, config_path: Union[str, Path]) -> List[str]:
    """
    Resolve the roles granted to a GitHub actor.

    Without a permission file everybody is a planner. An actor listed under
    no role is a planner as well.

    Raises:
        SecurityError: If the actor name is malformed
        ConfigError: If the permission file is not valid JSON
    """
    InputSanitizer.sanitize_actor(actor)

    path = Path(config_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug(f"No permission file at {path}, granting '{DEFAULT_ROLE}'")
        return [DEFAULT_ROLE]
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to decode permission file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Permission file must contain a JSON object: {path}")

    roles = [
        role for role, users in data.items()
        if isinstance(users, list) and actor in users
    ]
    return roles or [DEFAULT_ROLE]
