"""
Dependency graph data model and snapshot persistence.

The graph maps every Terraform root to the providers it requires and every
local module to the roots that consume it. It is persisted as a single JSON
snapshot (.tfdeps.json) whose lists are sorted so regenerating an unchanged
workspace produces byte-identical output.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import GraphDecodeError, GraphFileNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Root:
    """
    An independently-stateful Terraform configuration directory.

    Attributes:
        path: Workspace-relative directory path (unique key)
        providers: Provider identifiers, e.g. "registry.terraform.io/hashicorp/aws"
    """
    path: str
    providers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "providers": sorted(self.providers)}


@dataclass
class Module:
    """
    A shared configuration fragment referenced by one or more roots.

    Attributes:
        source: Workspace-relative directory path (unique key)
        used_in: Paths of the roots that reference this module
    """
    source: str
    used_in: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "usedIn": sorted(self.used_in)}


@dataclass
class MatrixEntry:
    """One unit of downstream parallel work: a root and its providers."""
    path: str
    providers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "providers": list(self.providers)}


def matrix_to_dict(entries: List[MatrixEntry]) -> Dict[str, Any]:
    """Wrap matrix entries in the {"include": [...]} shape CI expects."""
    return {"include": [entry.to_dict() for entry in entries]}


def _key_field(item: Dict[str, Any], name: str, source: str) -> Optional[str]:
    """Return a path/source key, None when absent."""
    value = item.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise GraphDecodeError(source, f'"{name}" must be a string: {value!r}')
    return value


def _string_list(item: Dict[str, Any], name: str, source: str) -> List[str]:
    value = item.get(name)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise GraphDecodeError(source, f'"{name}" must be a list of strings: {value!r}')
    return list(value)


def _reject_duplicates(keys: List[str], name: str, source: str):
    seen = set()
    for key in keys:
        if key in seen:
            raise GraphDecodeError(source, f'duplicate "{name}": {key}')
        seen.add(key)


class DependencyGraph:
    """
    Aggregate of roots and modules.

    Roots and modules are kept sorted by key; module consumer lists are
    sorted as well. Modules without consumers are dropped.
    """

    def __init__(self, roots: Optional[List[Root]] = None, modules: Optional[List[Module]] = None):
        self.roots: List[Root] = sorted(roots or [], key=lambda r: r.path)
        self.modules: List[Module] = sorted(
            (Module(source=m.source, used_in=sorted(set(m.used_in)))
             for m in (modules or []) if m.used_in),
            key=lambda m: m.source,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"DependencyGraph(roots={len(self.roots)}, modules={len(self.modules)})"

    def providers_by_root(self) -> Dict[str, List[str]]:
        """Return a path -> providers lookup."""
        return {root.path: list(root.providers) for root in self.roots}

    def consumers_by_module(self) -> Dict[str, List[str]]:
        """Return a source -> consuming root paths lookup."""
        return {module.source: list(module.used_in) for module in self.modules}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dirs": [root.to_dict() for root in self.roots],
            "modules": [module.to_dict() for module in self.modules],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    @classmethod
    def from_dict(cls, data: Any, source: str = "<dict>") -> "DependencyGraph":
        """
        Build a graph from its decoded JSON form.

        Entries without a path/source are skipped, matching how the snapshot
        has always been read. Anything else that does not fit the model is
        rejected rather than coerced.

        Raises:
            GraphDecodeError: If the structure is not a snapshot, a field has
                the wrong type, or a path/source appears twice
        """
        if not isinstance(data, dict):
            raise GraphDecodeError(source, "top-level value must be an object")

        dirs = data.get("dirs") or []
        modules = data.get("modules") or []
        if not isinstance(dirs, list) or not isinstance(modules, list):
            raise GraphDecodeError(source, '"dirs" and "modules" must be lists')

        roots = []
        for item in dirs:
            if not isinstance(item, dict):
                raise GraphDecodeError(source, f"invalid dirs entry: {item!r}")
            path = _key_field(item, "path", source)
            if path:
                roots.append(Root(path=path, providers=_string_list(item, "providers", source)))

        parsed_modules = []
        for item in modules:
            if not isinstance(item, dict):
                raise GraphDecodeError(source, f"invalid modules entry: {item!r}")
            module_source = _key_field(item, "source", source)
            if module_source:
                parsed_modules.append(
                    Module(source=module_source, used_in=_string_list(item, "usedIn", source))
                )

        _reject_duplicates([r.path for r in roots], "path", source)
        _reject_duplicates([m.source for m in parsed_modules], "source", source)

        return cls(roots=roots, modules=parsed_modules)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "DependencyGraph":
        """
        Load a graph snapshot from disk.

        Raises:
            GraphFileNotFoundError: If the file does not exist
            GraphDecodeError: If the file is not valid snapshot JSON
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise GraphFileNotFoundError(str(path)) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise GraphDecodeError(str(path), str(e)) from e

        graph = cls.from_dict(data, source=str(path))
        logger.debug(f"Loaded {graph!r} from {path}")
        return graph

    def save(self, path: Union[str, Path]):
        """Write the snapshot, replacing any previous file wholesale."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.debug(f"Saved {self!r} to {path}")
