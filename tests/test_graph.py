"""Tests for the dependency graph model and snapshot persistence."""

import json

import pytest

from tfmatrix.core.errors import GraphDecodeError, GraphFileNotFoundError
from tfmatrix.core.graph import DependencyGraph, MatrixEntry, Module, Root, matrix_to_dict


class TestDependencyGraph:
    def test_sorted_on_construction(self):
        graph = DependencyGraph(
            roots=[Root("b", ["z", "a"]), Root("a", [])],
            modules=[Module("modules/y", ["b", "a"]), Module("modules/x", ["a"])],
        )
        data = graph.to_dict()

        assert [d["path"] for d in data["dirs"]] == ["a", "b"]
        assert data["dirs"][1]["providers"] == ["a", "z"]
        assert [m["source"] for m in data["modules"]] == ["modules/x", "modules/y"]
        assert data["modules"][1]["usedIn"] == ["a", "b"]

    def test_inputs_are_not_mutated(self):
        module = Module("modules/m1", ["b", "a", "b"])
        graph = DependencyGraph(modules=[module])

        assert module.used_in == ["b", "a", "b"]
        assert graph.modules[0].used_in == ["a", "b"]
        assert graph.modules[0] is not module

    def test_modules_without_consumers_dropped(self):
        graph = DependencyGraph(roots=[Root("a")], modules=[Module("modules/unused", [])])
        assert graph.modules == []

    def test_json_is_stable(self):
        graph = DependencyGraph(roots=[Root("a", ["aws"])], modules=[Module("m", ["a"])])
        text = graph.to_json()

        assert text.endswith("\n")
        assert json.loads(text) == {
            "dirs": [{"path": "a", "providers": ["aws"]}],
            "modules": [{"source": "m", "usedIn": ["a"]}],
        }

    def test_lookups(self, sample_graph):
        assert sample_graph.providers_by_root() == {"app1": ["aws"], "app2": ["google"]}
        assert sample_graph.consumers_by_module() == {"modules/m1": ["app1", "app2"]}


class TestFromDict:
    def test_skips_entries_without_keys(self):
        graph = DependencyGraph.from_dict({
            "dirs": [{"path": "app1"}, {"providers": ["aws"]}],
            "modules": [{"usedIn": ["app1"]}],
        })
        assert [r.path for r in graph.roots] == ["app1"]
        assert graph.roots[0].providers == []
        assert graph.modules == []

    def test_missing_sections(self):
        graph = DependencyGraph.from_dict({})
        assert graph.roots == [] and graph.modules == []

    @pytest.mark.parametrize("data", [
        [],
        {"dirs": {"path": "a"}},
        {"modules": "m"},
        {"dirs": ["app1"]},
        {"dirs": [{"path": "app1", "providers": "aws"}]},
        {"dirs": [{"path": "app1", "providers": ["aws", 3]}]},
        {"dirs": [{"path": 5}]},
        {"dirs": [{"path": ["app1"]}]},
        {"modules": [{"source": "modules/m1", "usedIn": "app1"}]},
        {"modules": [{"source": "modules/m1", "usedIn": [None]}]},
        {"modules": [{"source": {"dir": "m1"}, "usedIn": ["app1"]}]},
    ])
    def test_rejects_malformed(self, data):
        with pytest.raises(GraphDecodeError):
            DependencyGraph.from_dict(data)

    def test_rejects_duplicate_roots(self):
        with pytest.raises(GraphDecodeError, match='duplicate "path": app1'):
            DependencyGraph.from_dict({"dirs": [{"path": "app1"}, {"path": "app1", "providers": ["aws"]}]})

    def test_rejects_duplicate_modules(self):
        data = {
            "dirs": [{"path": "app1"}, {"path": "app2"}],
            "modules": [
                {"source": "modules/m1", "usedIn": ["app1"]},
                {"source": "modules/m1", "usedIn": ["app2"]},
            ],
        }
        with pytest.raises(GraphDecodeError, match='duplicate "source": modules/m1'):
            DependencyGraph.from_dict(data, source=".tfdeps.json")

    def test_error_names_the_file(self):
        with pytest.raises(GraphDecodeError) as exc_info:
            DependencyGraph.from_dict({"dirs": [{"path": 5}]}, source="deps.json")
        assert str(exc_info.value).startswith("Failed to decode JSON from deps.json")


class TestLoadSave:
    def test_round_trip_file(self, tmp_path, sample_graph):
        path = tmp_path / ".tfdeps.json"
        sample_graph.save(path)

        assert DependencyGraph.load(path) == sample_graph
        assert path.read_text() == sample_graph.to_json()

    def test_missing_file(self, tmp_path):
        with pytest.raises(GraphFileNotFoundError) as exc_info:
            DependencyGraph.load(tmp_path / "missing.json")
        assert "File not found" in str(exc_info.value)

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / ".tfdeps.json"
        path.write_text("{not json")

        with pytest.raises(GraphDecodeError) as exc_info:
            DependencyGraph.load(path)
        assert "Failed to decode JSON" in str(exc_info.value)

    def test_missing_and_malformed_are_distinct(self):
        assert not issubclass(GraphFileNotFoundError, GraphDecodeError)
        assert not issubclass(GraphDecodeError, GraphFileNotFoundError)


def test_matrix_to_dict():
    entries = [MatrixEntry("app1", ["aws"])]
    assert matrix_to_dict(entries) == {"include": [{"path": "app1", "providers": ["aws"]}]}
