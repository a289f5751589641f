"""
Validation of operator-supplied target roots.
"""

import logging
from typing import List, Optional, Tuple

from .errors import TargetResolutionError
from .graph import DependencyGraph, MatrixEntry


def resolve_targets(targets: List[str], graph: DependencyGraph) -> Tuple[List[MatrixEntry], List[str]]:
    """
    Resolve target paths against the graph's roots.

    Each target is looked up exactly, then with one trailing '/' stripped.
    Duplicates (including "app" and "app/") collapse to one entry.

    Returns:
        (matched entries in input order, unresolved targets in input order)
    """
    providers_by_root = graph.providers_by_root()

    include: List[MatrixEntry] = []
    failed: List[str] = []
    seen = set()

    for target in targets:
        path = target
        if path not in providers_by_root and path.endswith('/'):
            path = path[:-1]

        if path not in providers_by_root:
            failed.append(target)
            continue

        if path not in seen:
            seen.add(path)
            include.append(MatrixEntry(path=path, providers=providers_by_root[path]))

    return include, failed


def select_targets(
    targets: List[str],
    graph: DependencyGraph,
    deps_file: str = ".tfdeps.json",
    logger: Optional[logging.Logger] = None,
) -> List[MatrixEntry]:
    """
    Validate targets all-or-nothing.

    Raises:
        TargetResolutionError: Naming every unresolved target
    """
    logger = logger or logging.getLogger(__name__)
    include, failed = resolve_targets(targets, graph)
    if failed:
        raise TargetResolutionError(failed, deps_file)

    logger.info(f"Selected targets: {[entry.path for entry in include]}")
    return include
