"""
Core decision engine for tfmatrix.

This module provides the logic that decides which Terraform roots to run:
- Building the root/module dependency graph of a workspace
- Resolving the roots affected by a diff
- Validating operator-selected targets
- Parsing chat commands
"""

from .errors import (
    TfMatrixError,
    ConfigError,
    ToolNotFoundError,
    CommandError,
    GitError,
    AnalysisError,
    GraphBuildError,
    GraphFileNotFoundError,
    GraphDecodeError,
    TargetResolutionError,
)
from .graph import DependencyGraph, Root, Module, MatrixEntry, matrix_to_dict
from .terraform_runner import TerraformRunner, CommandResult
from .git_client import GitClient
from .terraform_parser import TerraformParser, ModuleCall
from .inspectors import RootInspector, TerraformInspector, HclInspector, create_inspector
from .graph_builder import GraphBuilder, RootAnalysis, load_ignore_patterns
from .change_detector import ChangeDetector, calculate_execution_paths
from .target_selector import resolve_targets, select_targets
from .command_parser import ParsedCommand, parse_command
from .operator import CommandOperator, OperationResult
from .authorizer import resolve_roles

__all__ = [
    "TfMatrixError",
    "ConfigError",
    "ToolNotFoundError",
    "CommandError",
    "GitError",
    "AnalysisError",
    "GraphBuildError",
    "GraphFileNotFoundError",
    "GraphDecodeError",
    "TargetResolutionError",
    "DependencyGraph",
    "Root",
    "Module",
    "MatrixEntry",
    "matrix_to_dict",
    "TerraformRunner",
    "CommandResult",
    "GitClient",
    "TerraformParser",
    "ModuleCall",
    "RootInspector",
    "TerraformInspector",
    "HclInspector",
    "create_inspector",
    "GraphBuilder",
    "RootAnalysis",
    "load_ignore_patterns",
    "ChangeDetector",
    "calculate_execution_paths",
    "resolve_targets",
    "select_targets",
    "ParsedCommand",
    "parse_command",
    "CommandOperator",
    "OperationResult",
    "resolve_roles",
]
