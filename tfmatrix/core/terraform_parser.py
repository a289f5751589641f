"""
Terraform configuration parser.

This module parses the HCL files of a root directory to extract module calls
and required providers without running Terraform. It backs the static
inspector used when the Terraform CLI should not be invoked.
"""

import glob
import os
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import hcl2

from .errors import AnalysisError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "registry.terraform.io"
DEFAULT_NAMESPACE = "hashicorp"


@dataclass
class ModuleCall:
    """
    A `module` block found in a configuration.

    Attributes:
        name: Block label
        source: Literal value of the source argument
    """
    name: str
    source: str


def _unwrap(value: Any) -> Any:
    """
    Strip the single-element list wrapping some python-hcl2 releases
    put around attribute values.
    """
    while isinstance(value, list) and len(value) == 1:
        value = value[0]
    return value


def _clean_string(value: Any) -> Optional[str]:
    """Return a literal string value, or None for expressions/non-strings."""
    value = _unwrap(value)
    if not isinstance(value, str):
        return None
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
    if "${" in value:
        return None
    return value


def normalize_provider_source(local_name: str, source: Optional[str] = None) -> str:
    """
    Expand a provider source address to its fully-qualified form.

    "hashicorp/aws" -> "registry.terraform.io/hashicorp/aws"
    "aws" (no source) -> "registry.terraform.io/hashicorp/aws"
    """
    address = source or local_name
    parts = [p for p in address.strip().lower().split("/") if p]
    if len(parts) == 1:
        parts = [DEFAULT_REGISTRY, DEFAULT_NAMESPACE, parts[0]]
    elif len(parts) == 2:
        parts = [DEFAULT_REGISTRY] + parts
    return "/".join(parts)


class TerraformParser:
    """
    Parser for Terraform configuration files.

    Extracts module calls and required providers from every *.tf file
    directly inside the project directory.
    """

    def __init__(self, project_path: str):
        """
        Initialize parser for a Terraform root.

        Args:
            project_path: Path to Terraform root directory
        """
        self.project_path = project_path
        self._documents: Optional[List[Dict[str, Any]]] = None

    def _load_documents(self) -> List[Dict[str, Any]]:
        """
        Parse all .tf files once and cache the results.

        Raises:
            AnalysisError: If a file cannot be read or parsed
        """
        if self._documents is not None:
            return self._documents

        tf_files = sorted(glob.glob(os.path.join(self.project_path, "*.tf")))
        if not tf_files:
            logger.warning(f"No .tf files found in {self.project_path}")

        documents = []
        for tf_file in tf_files:
            try:
                with open(tf_file, 'r', encoding='utf-8') as f:
                    documents.append(hcl2.load(f))
            except Exception as e:
                raise AnalysisError(
                    f"HCL parse error in {os.path.basename(tf_file)}: {e}"
                ) from e

        self._documents = documents
        return self._documents

    def parse_module_calls(self) -> List[ModuleCall]:
        """
        Collect module blocks with a literal source argument.

        Returns:
            List of ModuleCall objects in file order
        """
        calls = []
        for document in self._load_documents():
            for module_block in document.get("module", []):
                for name, config in module_block.items():
                    # metadata keys such as __is_block__
                    if name.startswith("__"):
                        continue
                    source = _clean_string(config.get("source")) if isinstance(config, dict) else None
                    if source is None:
                        logger.debug(f"Skipping module '{name}' without literal source")
                        continue
                    calls.append(ModuleCall(name=name.strip('"'), source=source))
        return calls

    def parse_required_providers(self) -> List[str]:
        """
        Collect providers declared in terraform { required_providers { ... } }.

        Returns:
            Sorted, fully-qualified provider source addresses
        """
        providers = set()
        for document in self._load_documents():
            for terraform_block in document.get("terraform", []):
                for required in terraform_block.get("required_providers", []):
                    required = _unwrap(required)
                    if not isinstance(required, dict):
                        continue
                    for local_name, requirement in required.items():
                        if local_name.startswith("__"):
                            continue
                        requirement = _unwrap(requirement)
                        source = None
                        if isinstance(requirement, dict):
                            source = _clean_string(requirement.get("source"))
                        providers.add(normalize_provider_source(local_name, source))
        return sorted(providers)
