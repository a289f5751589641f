"""
Chat command parsing.

Recognizes commands of the form

    $terraform <plan|apply|help> [target ...]

on the first line of a pull request comment. Anything else is not a
command and yields None; a recognized command with an unsafe target yields
an "error" command so the operator can be told what was wrong.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..security.sanitizer import InputSanitizer, SecurityError

ACTION_PLAN = "plan"
ACTION_APPLY = "apply"
ACTION_HELP = "help"
ACTION_ERROR = "error"

DEFAULT_TRIGGER = "$terraform"

# "double quoted" | 'single quoted' | bare token
_TOKEN_RE = re.compile(r'"([^"]+)"|\'([^\']+)\'|(\S+)')


@dataclass
class ParsedCommand:
    """A recognized chat command."""
    action: str
    targets: List[str] = field(default_factory=list)
    message: str = ""


def get_help_message(trigger: str = DEFAULT_TRIGGER) -> str:
    """Return the usage text shown for the help command."""
    return f"""
### :robot: Terraform Bot Usage

- `{trigger} apply [targets...]`: Run `terraform apply`
- `{trigger} plan [targets...]`: Run `terraform plan`
- `{trigger} help`: Show this help message.

**Targets:**
- List of directories to apply changes to.
- If **no targets** are provided, the bot detects changes based on the PR diff.

**Examples:**
- `{trigger} apply`: Apply all changes in the PR.
- `{trigger} plan dev/frontend`: Plan changes in `dev/frontend`.
- `{trigger} apply dev/backend dev/db`: Apply for multiple paths.
""".strip()


def tokenize(line: str) -> List[str]:
    """Split a line into tokens, honoring "..." and '...' spans."""
    return [m.group(1) or m.group(2) or m.group(3) for m in _TOKEN_RE.finditer(line)]


def parse_command(comment_body: Optional[str], trigger: str = DEFAULT_TRIGGER) -> Optional[ParsedCommand]:
    """
    Parse a comment body into a command.

    Args:
        comment_body: Raw comment text
        trigger: Leading token that marks a command

    Returns:
        ParsedCommand, or None if the text is not a command
    """
    if not comment_body:
        return None

    first_line = comment_body.strip().splitlines()[0] if comment_body.strip() else ""
    args = tokenize(first_line)

    if len(args) < 2 or args[0] != trigger:
        return None

    action = args[1]
    if action == ACTION_HELP:
        return ParsedCommand(action=ACTION_HELP, targets=[], message=get_help_message(trigger))
    if action not in (ACTION_APPLY, ACTION_PLAN):
        return None

    targets = []
    for arg in args[2:]:
        try:
            targets.append(InputSanitizer.sanitize_target_path(arg))
        except SecurityError as e:
            return ParsedCommand(action=ACTION_ERROR, targets=[], message=str(e))

    return ParsedCommand(action=action, targets=targets)
