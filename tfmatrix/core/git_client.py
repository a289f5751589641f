"""
Git queries used by tfmatrix.

Wraps the handful of read-only git commands the tool needs: the workspace
top-level directory, the list of files changed between two revisions, and
the identity of the `origin` remote.
"""

import logging
import re
import subprocess
from typing import List, Optional, Tuple

from ..security.sanitizer import InputSanitizer, SecurityError
from ..utils import subprocess_creation_flags
from .errors import GitError, ToolNotFoundError

logger = logging.getLogger(__name__)

# owner/name at the end of https, ssh and scp-style remote URLs
_REPO_IDENTITY_RE = re.compile(r'(?:[:/]([^/:]+))?/([^/:]+?)(?:\.git)?/?$')


def parse_repo_identity(url: str) -> Optional[Tuple[Optional[str], str]]:
    """
    Extract (owner, name) from a git remote URL.

    Examples:
        https://github.com/org/repo.git -> ("org", "repo")
        git@github.com:org/repo.git     -> ("org", "repo")

    Returns:
        (owner, name) with lower-cased parts, owner may be None;
        None if the URL has no recognizable repository path
    """
    url = url.strip()
    if not url:
        return None
    match = _REPO_IDENTITY_RE.search(url)
    if not match:
        return None
    owner, name = match.group(1), match.group(2)
    return (owner.lower() if owner else None, name.lower())


class GitClient:
    """
    Read-only git operations for a repository.

    Uses the same security patterns as TerraformRunner: shell=False,
    validated args, timeouts.
    """

    def __init__(self, repo_path: str = ".", git_binary: str = "git", timeout: int = 60):
        self.repo_path = repo_path
        self.git_binary = git_binary
        self._timeout = timeout

    def _run(self, args: List[str]) -> Tuple[int, str, str]:
        """
        Run a git subcommand in the repository.

        Returns:
            (exit_code, stdout, stderr)

        Raises:
            ToolNotFoundError: If git cannot be started
        """
        cmd = [self.git_binary, "-C", self.repo_path] + args

        for arg in cmd:
            if not InputSanitizer.is_safe_command_arg(arg):
                raise SecurityError(f"Unsafe command argument: {arg}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                shell=False,
                creationflags=subprocess_creation_flags(),
            )
            return result.returncode, result.stdout, result.stderr
        except subprocess.TimeoutExpired:
            return -1, "", "Command timed out"
        except OSError as e:
            raise ToolNotFoundError(self.git_binary, str(e)) from e

    def toplevel(self) -> str:
        """
        Return the absolute path of the working tree root.

        Raises:
            GitError: If the path is not inside a git repository
        """
        code, stdout, stderr = self._run(["rev-parse", "--show-toplevel"])
        if code != 0:
            raise GitError(f"Could not determine workspace root: {stderr.strip()}")
        return stdout.strip()

    def diff_names(self, base: str, head: str) -> List[str]:
        """
        List files changed between two revisions.

        Raises:
            GitError: If a revision is invalid or git diff fails
        """
        try:
            InputSanitizer.sanitize_revision(base)
            InputSanitizer.sanitize_revision(head)
        except SecurityError as e:
            raise GitError(f"Error running git diff: {e}") from e

        code, stdout, stderr = self._run(["diff", "--name-only", base, head])
        if code != 0:
            raise GitError(f"Error running git diff: {stderr.strip()}")
        return [line for line in stdout.splitlines() if line.strip()]

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        """Return the URL of a remote, or None if it is not configured."""
        code, stdout, stderr = self._run(["remote", "get-url", remote])
        if code != 0:
            logger.warning(f"Could not determine repository remote '{remote}': {stderr.strip()}")
            return None
        return stdout.strip() or None

    def repo_identity(self, remote: str = "origin") -> Optional[Tuple[Optional[str], str]]:
        """Return (owner, name) of the remote repository, or None."""
        url = self.remote_url(remote)
        if url is None:
            return None
        identity = parse_repo_identity(url)
        if identity is None:
            logger.warning(f"Could not parse repository name from remote URL: {url}")
        return identity
