"""
Dispatch of chat commands to target selection or change detection.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .command_parser import (
    ACTION_ERROR,
    ACTION_HELP,
    DEFAULT_TRIGGER,
    ParsedCommand,
    parse_command,
)
from .errors import TfMatrixError
from .graph import MatrixEntry

ACTION_SKIPPED = "skipped"

NOT_A_COMMAND_MESSAGE = "Not a valid command."
NO_MATCH_MESSAGE = "No Terraform directories matched the criteria."


@dataclass
class OperationResult:
    """What the workflow should do in response to a comment."""
    command: str
    targets: List[MatrixEntry] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "targets": [entry.to_dict() for entry in self.targets],
            "message": self.message,
        }


class CommandOperator:
    """
    Turns a comment into an OperationResult.

    Explicit targets go to select_targets; a bare plan/apply goes to
    detect_changes with the pull request's base and head revisions.
    """

    def __init__(
        self,
        detect_changes: Callable[[str, str], List[MatrixEntry]],
        select_targets: Callable[[List[str]], List[MatrixEntry]],
        trigger: str = DEFAULT_TRIGGER,
        parse: Callable[..., Optional[ParsedCommand]] = parse_command,
        logger: Optional[logging.Logger] = None,
    ):
        self.detect_changes = detect_changes
        self.select_targets = select_targets
        self.trigger = trigger
        self.parse = parse
        self.logger = logger or logging.getLogger(__name__)

    def operate(self, comment_body: Optional[str], base_sha: str = "", head_sha: str = "") -> OperationResult:
        parsed = self.parse(comment_body, trigger=self.trigger)
        if parsed is None:
            return OperationResult(command=ACTION_SKIPPED, message=NOT_A_COMMAND_MESSAGE)

        if parsed.action in (ACTION_HELP, ACTION_ERROR):
            return OperationResult(command=parsed.action, message=parsed.message)

        try:
            if parsed.targets:
                entries = self.select_targets(parsed.targets)
            else:
                entries = self.detect_changes(base_sha, head_sha)
        except TfMatrixError as e:
            self.logger.error(f"Failed to resolve targets for '{parsed.action}': {e}")
            return OperationResult(command=ACTION_ERROR, message=str(e))

        if not entries:
            return OperationResult(command=ACTION_ERROR, message=NO_MATCH_MESSAGE)

        return OperationResult(command=parsed.action, targets=entries)
