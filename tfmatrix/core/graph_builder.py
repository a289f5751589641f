"""
Dependency graph generation.

Scans a workspace for Terraform roots (directories holding a version marker
file), analyzes every root concurrently through an inspector, resolves the
local modules each root calls to workspace-relative paths and assembles the
sorted DependencyGraph.

The build fails closed: if any root cannot be analyzed no graph is
returned, even though the other roots were analyzed successfully.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from ..security.sanitizer import SecurityError
from .errors import GraphBuildError, TfMatrixError
from .git_client import GitClient, parse_repo_identity
from .graph import DependencyGraph, Module, Root
from .inspectors import RootInspector

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

RepoIdentity = Tuple[Optional[str], str]


@dataclass
class RootAnalysis:
    """Outcome of analyzing a single root."""
    root: str
    status: str = STATUS_SUCCESS
    logs: List[str] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    providers: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


def load_ignore_patterns(ignore_file: Optional[Union[str, Path]], workspace_root: Union[str, Path],
                         default_name: str = ".tfdepsignore") -> Set[str]:
    """
    Load ignore patterns from a file.

    Patterns are literal paths separated by newlines or whitespace. Blank
    lines and lines starting with '#' are skipped. A missing file yields
    no patterns.

    Args:
        ignore_file: Explicit ignore file, or None for <workspace>/.tfdepsignore
        workspace_root: Workspace directory
        default_name: File name used when ignore_file is None

    Returns:
        Set of normalized patterns
    """
    path = Path(ignore_file) if ignore_file else Path(workspace_root) / default_name
    if not path.exists():
        return set()

    patterns = set()
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            for token in line.split():
                token = token.rstrip('/')
                if token.startswith('./'):
                    token = token[2:]
                if token:
                    patterns.add(token)
    return patterns


def is_ignored(rel_path: str, ignore_patterns: Iterable[str]) -> bool:
    """
    Check a workspace-relative directory against ignore patterns.

    A pattern matches when the path equals it, is nested under it, or the
    directory's basename equals it. Patterns are not anchored to depth.
    """
    name = rel_path.rsplit('/', 1)[-1]
    for pattern in ignore_patterns:
        if rel_path == pattern or rel_path.startswith(pattern + '/') or name == pattern:
            return True
    return False


def is_vcs_source(source: str) -> bool:
    """Return True for git-hosted module sources."""
    return source.startswith(("git::", "git@", "github.com/"))


def split_vcs_source(source: str) -> Tuple[str, str]:
    """
    Split a git module source into (repository URL, sub-path).

    "git::https://github.com/org/repo.git//modules/vpc?ref=v1"
        -> ("https://github.com/org/repo.git", "modules/vpc")
    """
    address = source[len("git::"):] if source.startswith("git::") else source
    address = address.split('?', 1)[0]

    scheme = address.find("://")
    start = scheme + 3 if scheme >= 0 else 0
    sub = address.find("//", start)
    if sub < 0:
        return address, ""
    return address[:sub], address[sub + 2:].strip('/')


def same_repository(source_url: str, identity: Optional[RepoIdentity]) -> bool:
    """Check whether a source URL points at the repository named by identity."""
    if identity is None:
        return False
    source_identity = parse_repo_identity(source_url)
    if source_identity is None:
        return False
    owner, name = identity
    source_owner, source_name = source_identity
    if name != source_name:
        return False
    return owner is None or source_owner is None or owner == source_owner


class GraphBuilder:
    """
    Builds the dependency graph of a workspace.

    Collaborators are passed in explicitly: the inspector that queries each
    root, and an optional GitClient used once per build to learn the
    repository's own identity (for same-repository git module sources).
    """

    def __init__(
        self,
        workspace_root: Union[str, Path],
        inspector: RootInspector,
        git_client: Optional[GitClient] = None,
        marker_file: str = ".terraform-version",
        max_workers: Optional[int] = 8,
        default_ignore_patterns: Iterable[str] = (".git", ".terraform"),
        logger: Optional[logging.Logger] = None,
    ):
        self.workspace_root = os.path.realpath(str(workspace_root))
        self.inspector = inspector
        self.git_client = git_client
        self.marker_file = marker_file
        self.max_workers = max_workers
        self.default_ignore_patterns = set(default_ignore_patterns)
        self.logger = logger or logging.getLogger(__name__)
        self._repo_identity: Optional[RepoIdentity] = None
        self._identity_loaded = False

    def repo_identity(self) -> Optional[RepoIdentity]:
        """Return the (owner, name) of the workspace repository, cached per builder."""
        if not self._identity_loaded:
            if self.git_client is not None:
                try:
                    self._repo_identity = self.git_client.repo_identity()
                except TfMatrixError as e:
                    self.logger.warning(f"Could not determine repository name: {e}")
            self._identity_loaded = True
            if self._repo_identity is not None:
                self.logger.info(f"Detected repository name: {self._repo_identity[1]}")
        return self._repo_identity

    def find_roots(self, ignore_patterns: Iterable[str] = ()) -> List[str]:
        """
        Find all Terraform roots under the workspace.

        Ignored directories are pruned, so their descendants are never
        visited.

        Returns:
            Sorted list of workspace-relative root paths
        """
        patterns = self.default_ignore_patterns | set(ignore_patterns)
        roots = []

        for dirpath, dirnames, filenames in os.walk(self.workspace_root):
            rel_dir = os.path.relpath(dirpath, self.workspace_root).replace(os.sep, '/')

            kept = []
            for dirname in sorted(dirnames):
                rel_child = dirname if rel_dir == '.' else f"{rel_dir}/{dirname}"
                if not is_ignored(rel_child, patterns):
                    kept.append(dirname)
            dirnames[:] = kept

            if self.marker_file in filenames:
                if rel_dir == '.':
                    self.logger.warning(
                        f"Ignoring {self.marker_file} at the workspace root; "
                        "roots must be subdirectories"
                    )
                else:
                    roots.append(rel_dir)

        return sorted(roots)

    def resolve_local_module(self, root_abs: str, source: str, module_dir: str = "") -> Optional[str]:
        """
        Resolve a module source to a workspace-relative directory.

        Tried in order:
        1. git source pointing at this repository: sub-path from the workspace root
        2. directory reported by the inspector, relative to the root
        3. relative filesystem source ("./x", "../x"), relative to the root

        Returns:
            Relative path, or None if the module is not a local directory
            inside the workspace
        """
        candidate = None

        if is_vcs_source(source):
            repo_url, sub_path = split_vcs_source(source)
            if sub_path and same_repository(repo_url, self.repo_identity()):
                candidate = os.path.join(self.workspace_root, sub_path)

        if candidate is None:
            if module_dir:
                candidate = os.path.join(root_abs, module_dir)
            elif source.startswith('.'):
                candidate = os.path.join(root_abs, source)

        if candidate is None:
            return None

        candidate = os.path.normpath(candidate)
        if not os.path.isdir(candidate):
            return None

        rel = os.path.relpath(candidate, self.workspace_root)
        if rel == '.' or rel == '..' or rel.startswith('..' + os.sep):
            return None

        parts = rel.split(os.sep)
        # Remote modules downloaded by init live under .terraform/modules
        if ".terraform" in parts:
            return None

        return '/'.join(parts)

    def analyze_root(self, root_rel: str) -> RootAnalysis:
        """
        Analyze a single root. Never raises for per-root failures; they are
        recorded on the returned RootAnalysis.
        """
        root_abs = os.path.join(self.workspace_root, root_rel)
        result = RootAnalysis(root=root_rel)

        try:
            self.inspector.ensure_initialized(root_abs)
            module_calls = self.inspector.list_modules(root_abs)
            providers = self.inspector.list_providers(root_abs)
        except (TfMatrixError, SecurityError) as e:
            result.status = STATUS_ERROR
            result.logs.append(str(e))
            return result

        modules = set()
        for call in module_calls:
            source = call.get("source", "")
            if not source:
                continue
            resolved = self.resolve_local_module(root_abs, source, call.get("dir", ""))
            if resolved:
                modules.add(resolved)
            else:
                self.logger.debug(f"{root_rel}: module source '{source}' is not local")

        result.modules = sorted(modules)
        result.providers = sorted(set(providers))
        return result

    def analyze_roots(self, roots: List[str]) -> List[RootAnalysis]:
        """
        Analyze roots concurrently on a bounded thread pool.

        Every task runs to completion; failures are only looked at once all
        results are in. Results are sorted by root path.
        """
        if not roots:
            return []

        results = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {root: executor.submit(self.analyze_root, root) for root in roots}
            for root, future in futures.items():
                try:
                    results.append(future.result())
                except Exception as e:
                    results.append(RootAnalysis(
                        root=root,
                        status=STATUS_ERROR,
                        logs=[f"Unexpected error: {e!r}"],
                    ))

        return sorted(results, key=lambda r: r.root)

    def assemble(self, results: List[RootAnalysis]) -> DependencyGraph:
        """
        Aggregate per-root results into a graph.

        Raises:
            GraphBuildError: If any root failed
        """
        module_usage: Dict[str, List[str]] = {}
        failed_roots = []
        roots = []

        for res in sorted(results, key=lambda r: r.root):
            if res.succeeded:
                if res.logs:
                    self.logger.warning(f"Warnings for {res.root}:")
                    for line in res.logs:
                        self.logger.warning(f"    {line}")
                self.logger.info(f"OK {res.root}")

                roots.append(Root(path=res.root, providers=res.providers))
                for mod in res.modules:
                    module_usage.setdefault(mod, []).append(res.root)
            else:
                self.logger.error(f"FAILED {res.root}")
                for line in res.logs:
                    self.logger.error(f"    {line}")
                failed_roots.append(res.root)

        if failed_roots:
            self.logger.error(f"Analysis failed for {len(failed_roots)} roots.")
            raise GraphBuildError(failed_roots)

        modules = [Module(source=source, used_in=used_in) for source, used_in in module_usage.items()]
        return DependencyGraph(roots=roots, modules=modules)

    def build(self, ignore_patterns: Iterable[str] = ()) -> DependencyGraph:
        """
        Run a full scan and return the dependency graph.

        Raises:
            GraphBuildError: If any root failed
        """
        self.logger.info(f"Discovery: scanning {self.workspace_root} for Terraform roots...")
        roots = self.find_roots(ignore_patterns)
        self.logger.info(f"Found {len(roots)} roots")

        # Resolve once before fan-out so workers share the cached value
        self.repo_identity()

        self.logger.info("Analysis: generating dependency graph...")
        results = self.analyze_roots(roots)
        return self.assemble(results)
