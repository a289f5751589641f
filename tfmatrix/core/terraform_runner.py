"""
Terraform command execution for dependency analysis.

This module provides secure execution of the read-only Terraform commands
the graph builder needs (version, init without backend, modules, providers
schema) with argument validation and timeouts.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..security.sanitizer import InputSanitizer, SecurityError
from ..utils import subprocess_creation_flags
from .errors import CommandError, ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a Terraform command execution."""
    exit_code: int
    stdout: str
    stderr: str
    success: bool
    command: str  # operation name (e.g. "init", "modules")


class TerraformRunner:
    """
    Executes Terraform commands for a single root directory.

    Security features:
    - shell=False always (no shell interpretation)
    - -input=false prevents stdin prompts
    - Process timeout (default 300s)
    - All command args validated via is_safe_command_arg()
    """

    def __init__(
        self,
        project_path: str,
        terraform_binary: str = "terraform",
        timeout: int = 300,
    ):
        self.project_path = project_path
        self.terraform_binary = terraform_binary
        self._timeout = timeout

    def version(self) -> CommandResult:
        """Run terraform -version (no -chdir, works anywhere)."""
        return self._execute([self.terraform_binary, "-version"], "version")

    def init(self, backend: bool = False) -> CommandResult:
        """Run terraform init; by default without configuring a backend."""
        cmd = self._build_base_command("init")
        cmd.extend([f"-backend={'true' if backend else 'false'}", "-input=false", "-no-color"])
        return self._execute(cmd, "init")

    def modules(self) -> Dict[str, Any]:
        """Run terraform modules -json and return the decoded document."""
        cmd = self._build_base_command("modules")
        cmd.append("-json")
        return self._execute_json(cmd, "modules")

    def providers_schema(self) -> Dict[str, Any]:
        """Run terraform providers schema -json and return the decoded document."""
        cmd = self._build_base_command("providers")
        cmd.extend(["schema", "-json"])
        return self._execute_json(cmd, "providers schema")

    def _build_base_command(self, operation: str) -> List[str]:
        """Construct the base command list [binary, -chdir=path, operation]."""
        chdir_arg = f"-chdir={self.project_path}"
        if not InputSanitizer.is_safe_command_arg(chdir_arg):
            raise SecurityError("Unsafe project path for command argument")
        return [self.terraform_binary, chdir_arg, operation]

    def _execute_json(self, cmd: List[str], operation: str) -> Dict[str, Any]:
        """
        Execute a command that prints JSON on success.

        Raises:
            CommandError: On non-zero exit or undecodable output
        """
        result = self._execute(cmd, operation)
        if not result.success:
            raise CommandError(f"terraform {operation}", result.exit_code, result.stderr)

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise CommandError(
                f"terraform {operation}", result.exit_code, f"JSON decode error: {e}"
            ) from e

        if not isinstance(data, dict):
            raise CommandError(
                f"terraform {operation}", result.exit_code, "expected a JSON object"
            )
        return data

    def _execute(self, cmd: List[str], operation: str) -> CommandResult:
        """
        Execute a command and capture its output.

        Raises:
            ToolNotFoundError: If the binary cannot be started
        """
        for arg in cmd:
            if not InputSanitizer.is_safe_command_arg(arg):
                raise SecurityError(f"Unsafe command argument: {arg}")

        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                shell=False,
                creationflags=subprocess_creation_flags(),
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                exit_code=-1,
                stdout="",
                stderr="Command timed out",
                success=False,
                command=operation,
            )
        except OSError as e:
            raise ToolNotFoundError(self.terraform_binary, str(e)) from e

        return CommandResult(
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            success=result.returncode == 0,
            command=operation,
        )


def ensure_terraform(terraform_binary: str = "terraform", timeout: int = 60) -> str:
    """
    Verify the Terraform binary runs and return its version line.

    Raises:
        ToolNotFoundError: If terraform is missing or exits non-zero
    """
    result = TerraformRunner(".", terraform_binary, timeout=timeout).version()
    if not result.success:
        raise ToolNotFoundError(terraform_binary, result.stderr.strip())
    return result.stdout.split("\n")[0].strip()


def parse_modules_document(data: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Normalize a module listing into [{"source": ..., "dir": ...}].

    Accepts both the `terraform modules -json` spelling and the
    .terraform/modules/modules.json manifest spelling (capitalized keys).
    Entries without a source are skipped.
    """
    raw = data.get("Modules")
    if raw is None:
        raw = data.get("modules")
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ValueError("module listing must be a list")

    calls = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        source = item.get("Source") or item.get("source")
        if not source:
            continue
        calls.append({
            "source": source,
            "dir": item.get("Dir") or item.get("dir") or "",
        })
    return calls


def parse_providers_document(data: Dict[str, Any]) -> List[str]:
    """Return the sorted provider identifiers of a providers schema document."""
    schemas = data.get("provider_schemas") or {}
    if not isinstance(schemas, dict):
        raise ValueError("provider_schemas must be an object")
    return sorted(schemas.keys())
