"""Custom exceptions for tfmatrix."""

from typing import Iterable


class TfMatrixError(Exception):
    """Base exception for all tfmatrix errors."""


class ConfigError(TfMatrixError):
    """Configuration-related errors."""


class ToolNotFoundError(TfMatrixError):
    """Raised when a required external tool is missing or unusable."""

    def __init__(self, tool: str, detail: str = ""):
        message = f"'{tool}' command not found or failed to run"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.tool = tool


class CommandError(TfMatrixError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: str, exit_code: int, stderr: str = ""):
        message = f"Command failed: {command}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class GitError(TfMatrixError):
    """Git invocation errors."""


class AnalysisError(TfMatrixError):
    """Raised when a single Terraform root cannot be analyzed."""


class GraphBuildError(TfMatrixError):
    """Raised when one or more roots failed and no graph may be written."""

    def __init__(self, failed_roots: Iterable[str]):
        self.failed_roots = sorted(failed_roots)
        super().__init__(
            f"Analysis failed for {len(self.failed_roots)} roots: "
            f"{', '.join(self.failed_roots)}"
        )


class GraphFileNotFoundError(TfMatrixError):
    """Raised when the dependency graph snapshot does not exist."""

    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class GraphDecodeError(TfMatrixError):
    """Raised when the dependency graph snapshot cannot be decoded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to decode JSON from {path}: {reason}")
        self.path = path


class TargetResolutionError(TfMatrixError):
    """Raised when operator-supplied targets are not known roots."""

    def __init__(self, failed_targets: Iterable[str], deps_file: str = ".tfdeps.json"):
        self.failed_targets = list(failed_targets)
        super().__init__(
            f"The following targets were not found in {deps_file}: "
            f"{', '.join(self.failed_targets)}"
        )
