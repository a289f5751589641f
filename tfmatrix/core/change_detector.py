"""
Change impact resolution.

Maps the files changed between two revisions onto the Terraform roots that
must be planned or applied: roots containing a changed file directly, plus
every root consuming a changed local module (one level, no transitive
module-to-module edges).
"""

import logging
from typing import Iterable, List, Optional, Set

from .git_client import GitClient
from .graph import DependencyGraph, MatrixEntry


def _longest_prefix_match(path: str, prefixes: List[str]) -> Optional[str]:
    """
    Return the first prefix P with path under P/.

    prefixes must be ordered longest first, so the most deeply nested
    match wins.
    """
    for prefix in prefixes:
        if path.startswith(prefix + '/'):
            return prefix
    return None


def calculate_execution_paths(
    changed_files: Iterable[str],
    graph: DependencyGraph,
    logger: Optional[logging.Logger] = None,
) -> List[MatrixEntry]:
    """
    Calculate which roots need execution for a set of changed files.

    A file under a root marks that root and is not matched against modules.
    Otherwise the longest module source prefixing the file marks that
    module as changed, and all of its consumers become affected.

    Args:
        changed_files: Workspace-relative paths of changed files
        graph: Dependency graph snapshot
        logger: Logger for the changed-module and trigger diagnostics

    Returns:
        Affected roots with their providers, sorted by path
    """
    logger = logger or logging.getLogger(__name__)

    root_providers = graph.providers_by_root()
    module_usage = graph.consumers_by_module()

    sorted_roots = sorted(root_providers, key=len, reverse=True)
    sorted_modules = sorted(module_usage, key=len, reverse=True)

    affected_roots: Set[str] = set()
    changed_modules: Set[str] = set()

    for changed_file in changed_files:
        root = _longest_prefix_match(changed_file, sorted_roots)
        if root is not None:
            affected_roots.add(root)
            continue

        module = _longest_prefix_match(changed_file, sorted_modules)
        if module is not None:
            changed_modules.add(module)

    if changed_modules:
        logger.info(f"Changed modules: {sorted(changed_modules)}")

        for module in sorted(changed_modules):
            for consumer in module_usage.get(module, []):
                if consumer not in affected_roots:
                    logger.info(f"Triggering {consumer} due to change in {module}")
                    affected_roots.add(consumer)

    return [
        MatrixEntry(path=path, providers=root_providers.get(path, []))
        for path in sorted(affected_roots)
    ]


class ChangeDetector:
    """
    Resolves the roots affected by the diff between two revisions.

    The git client is injected so tests can supply a canned diff.
    """

    def __init__(self, git_client: GitClient, logger: Optional[logging.Logger] = None):
        self.git_client = git_client
        self.logger = logger or logging.getLogger(__name__)

    def detect(self, base: str, head: str, graph: DependencyGraph) -> List[MatrixEntry]:
        """
        Return the matrix entries affected by base..head.

        Raises:
            GitError: If the diff cannot be computed
        """
        changed_files = self.git_client.diff_names(base, head)
        self.logger.debug(f"{len(changed_files)} files changed between {base} and {head}")
        return calculate_execution_paths(changed_files, graph, self.logger)
