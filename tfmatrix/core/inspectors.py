"""
Per-root inspection backends for the graph builder.

An inspector answers three questions about one Terraform root: make sure it
can be queried, which modules does it call, which providers does it need.
The builder only talks to this interface, so tests and offline runs can
swap the Terraform CLI for the static HCL reader.
"""

import logging
import os
import threading
from typing import Dict, List

from .errors import AnalysisError, CommandError, ConfigError
from .terraform_parser import TerraformParser
from .terraform_runner import (
    TerraformRunner,
    parse_modules_document,
    parse_providers_document,
)

logger = logging.getLogger(__name__)


class RootInspector:
    """Interface implemented by inspection backends."""

    name = "base"

    def ensure_initialized(self, root_abs: str) -> None:
        raise NotImplementedError

    def list_modules(self, root_abs: str) -> List[Dict[str, str]]:
        """Return module calls as [{"source": ..., "dir": ...}]."""
        raise NotImplementedError

    def list_providers(self, root_abs: str) -> List[str]:
        raise NotImplementedError


class TerraformInspector(RootInspector):
    """Inspects roots by running the Terraform CLI."""

    name = "terraform"

    def __init__(self, terraform_binary: str = "terraform", timeout: int = 300):
        self.terraform_binary = terraform_binary
        self.timeout = timeout

    def _runner(self, root_abs: str) -> TerraformRunner:
        return TerraformRunner(root_abs, self.terraform_binary, timeout=self.timeout)

    def ensure_initialized(self, root_abs: str) -> None:
        """
        Run a backend-less init unless the root already has .terraform.

        Raises:
            AnalysisError: If init fails
        """
        if os.path.exists(os.path.join(root_abs, ".terraform")):
            return

        logger.debug(f"Initializing {root_abs} without backend")
        result = self._runner(root_abs).init(backend=False)
        if not result.success:
            raise AnalysisError(f"Initialization failed: {result.stderr.strip()}")

    def list_modules(self, root_abs: str) -> List[Dict[str, str]]:
        try:
            return parse_modules_document(self._runner(root_abs).modules())
        except (CommandError, ValueError) as e:
            raise AnalysisError(f"'terraform modules' failed in {root_abs}: {e}") from e

    def list_providers(self, root_abs: str) -> List[str]:
        try:
            return parse_providers_document(self._runner(root_abs).providers_schema())
        except (CommandError, ValueError) as e:
            raise AnalysisError(f"Failed to get providers schema in {root_abs}: {e}") from e


class HclInspector(RootInspector):
    """
    Inspects roots by reading their HCL files; never runs Terraform.

    One parser is kept per root between list_modules and list_providers so
    each file is parsed once. list_providers is the last query the builder
    makes for a root and releases it.
    """

    name = "hcl"

    def __init__(self):
        self._parsers: Dict[str, TerraformParser] = {}
        self._lock = threading.Lock()

    def _parser(self, root_abs: str) -> TerraformParser:
        with self._lock:
            parser = self._parsers.get(root_abs)
            if parser is None:
                parser = self._parsers[root_abs] = TerraformParser(root_abs)
            return parser

    def ensure_initialized(self, root_abs: str) -> None:
        pass

    def list_modules(self, root_abs: str) -> List[Dict[str, str]]:
        calls = self._parser(root_abs).parse_module_calls()
        return [{"source": call.source, "dir": ""} for call in calls]

    def list_providers(self, root_abs: str) -> List[str]:
        try:
            return self._parser(root_abs).parse_required_providers()
        finally:
            with self._lock:
                self._parsers.pop(root_abs, None)


def create_inspector(kind: str, terraform_binary: str = "terraform", timeout: int = 300) -> RootInspector:
    """Return the inspector named by the `inspector` setting."""
    if kind == TerraformInspector.name:
        return TerraformInspector(terraform_binary, timeout)
    if kind == HclInspector.name:
        return HclInspector()
    raise ConfigError(f"Unknown inspector: {kind}")
