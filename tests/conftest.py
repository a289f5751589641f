"""Shared fixtures for tfmatrix tests."""

import os

import pytest

from tfmatrix.core.graph import DependencyGraph


@pytest.fixture
def sample_graph():
    """Two roots sharing one module."""
    return DependencyGraph.from_dict({
        "dirs": [
            {"path": "app1", "providers": ["aws"]},
            {"path": "app2", "providers": ["google"]},
        ],
        "modules": [
            {"source": "modules/m1", "usedIn": ["app1", "app2"]},
        ],
    })


class FakeInspector:
    """In-memory inspector keyed by workspace-relative root path."""

    name = "fake"

    def __init__(self, workspace, modules=None, providers=None, failures=None):
        self.workspace = os.path.realpath(str(workspace))
        self.modules = modules or {}
        self.providers = providers or {}
        self.failures = failures or {}
        self.initialized = []

    def _rel(self, root_abs):
        return root_abs[len(self.workspace) + 1:].replace("\\", "/")

    def ensure_initialized(self, root_abs):
        self.initialized.append(self._rel(root_abs))

    def list_modules(self, root_abs):
        rel = self._rel(root_abs)
        if rel in self.failures:
            raise self.failures[rel]
        return self.modules.get(rel, [])

    def list_providers(self, root_abs):
        return self.providers.get(self._rel(root_abs), [])


def make_root(workspace, rel, marker=".terraform-version"):
    """Create a root directory with a marker file and return its path."""
    path = workspace / rel
    path.mkdir(parents=True, exist_ok=True)
    (path / marker).write_text("1.9.5\n")
    (path / "main.tf").write_text("")
    return path
