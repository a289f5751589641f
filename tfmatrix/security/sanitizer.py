"""
Input sanitization and validation for tfmatrix.

This module provides secure input validation to prevent:
- Path traversal through operator-supplied target paths
- Option injection through git revisions
- Unsafe arguments reaching subprocess calls
"""

import re
from typing import Set


class SecurityError(Exception):
    """Raised when a security validation fails."""
    pass


class InputSanitizer:
    """
    Provides input validation and sanitization methods.

    All sanitize_* methods raise SecurityError if validation fails.
    """

    # Target paths are later used as lookup keys and working directories:
    # letters, digits, underscore, hyphen and forward slash only
    TARGET_PATH_PATTERN = re.compile(r'[A-Za-z0-9_/-]+')
    TARGET_PATH_CHARS = set(
        "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-/"
    )

    # Commit SHAs, branch names and simple revision expressions
    REVISION_PATTERN = re.compile(r'[A-Za-z0-9_./~^@{}-]+')

    # GitHub logins: alphanumerics and single hyphens
    ACTOR_PATTERN = re.compile(r'[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?')

    # Maximum lengths to prevent resource exhaustion
    MAX_TARGET_PATH_LENGTH = 1024
    MAX_REVISION_LENGTH = 255
    MAX_ACTOR_LENGTH = 39

    @staticmethod
    def forbidden_target_chars(target: str) -> Set[str]:
        """
        Return the characters of a target path outside the allowed set.

        Args:
            target: Raw target token

        Returns:
            Set of offending characters (empty if the token is clean)
        """
        return set(target) - InputSanitizer.TARGET_PATH_CHARS

    @staticmethod
    def sanitize_target_path(target: str) -> str:
        """
        Validate an operator-supplied Terraform root path.

        Rules:
        - Cannot be empty
        - Letters, digits, underscores, hyphens and forward slashes only
        - Max length: 1024 characters

        Args:
            target: Target path to validate

        Returns:
            Validated target path (unchanged if valid)

        Raises:
            SecurityError: If target is invalid
        """
        if not target:
            raise SecurityError("Target path cannot be empty")

        if len(target) > InputSanitizer.MAX_TARGET_PATH_LENGTH:
            raise SecurityError(
                f"Target path too long (max {InputSanitizer.MAX_TARGET_PATH_LENGTH})"
            )

        if not InputSanitizer.TARGET_PATH_PATTERN.fullmatch(target):
            forbidden = "".join(sorted(InputSanitizer.forbidden_target_chars(target)))
            raise SecurityError(
                f'Invalid target path provided: "{target}" '
                f'(forbidden characters: "{forbidden}"). '
                'Only alphanumeric characters, "_", "-", and "/" are allowed.'
            )

        return target

    @staticmethod
    def sanitize_revision(revision: str) -> str:
        """
        Validate a git revision (commit SHA, branch or tag name).

        Rules:
        - Cannot be empty
        - Cannot start with a hyphen (would be read as an option)
        - Restricted to characters valid in refs and revision suffixes

        Args:
            revision: Revision to validate

        Returns:
            Validated revision (unchanged if valid)

        Raises:
            SecurityError: If revision is invalid
        """
        if not revision:
            raise SecurityError("Revision cannot be empty")

        if len(revision) > InputSanitizer.MAX_REVISION_LENGTH:
            raise SecurityError(
                f"Revision too long (max {InputSanitizer.MAX_REVISION_LENGTH})"
            )

        if revision.startswith("-"):
            raise SecurityError("Revision cannot start with hyphen")

        if not InputSanitizer.REVISION_PATTERN.fullmatch(revision):
            raise SecurityError(f"Invalid revision '{revision}'")

        return revision

    @staticmethod
    def sanitize_actor(actor: str) -> str:
        """
        Validate a GitHub actor login.

        Args:
            actor: Login name to validate

        Returns:
            Validated login (unchanged if valid)

        Raises:
            SecurityError: If login is invalid
        """
        if not actor:
            raise SecurityError("Actor cannot be empty")

        if len(actor) > InputSanitizer.MAX_ACTOR_LENGTH:
            raise SecurityError(
                f"Actor name too long (max {InputSanitizer.MAX_ACTOR_LENGTH})"
            )

        if not InputSanitizer.ACTOR_PATTERN.fullmatch(actor):
            raise SecurityError(f"Invalid actor name '{actor}'")

        return actor

    @staticmethod
    def is_safe_command_arg(arg: str) -> bool:
        """
        Check if a command argument is safe to pass to subprocess.

        This is a defense-in-depth check. We should always use shell=False,
        but this adds an extra layer of validation.

        Args:
            arg: Command argument to check

        Returns:
            True if safe, False otherwise
        """
        # Null bytes can truncate arguments in some C-level APIs
        if '\x00' in arg:
            return False

        if len(arg) > 10000:
            return False

        return True
