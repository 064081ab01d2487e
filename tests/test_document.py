"""Tests for clipedit.document: composition and plan files."""

import json
import tempfile

import pytest
import yaml

from clipedit.document import load_composition, load_plan, save_composition
from clipedit.executor import apply


def _write_yaml(content, suffix=".yaml"):
    """Write a dict to a temp YAML file and return its path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=suffix, delete=False)
    yaml.dump(content, f)
    f.close()
    return f.name


class TestCompositionFiles:
    def test_round_trip(self, sample_composition, tmp_path):
        path = tmp_path / "doc.yaml"
        save_composition(sample_composition, path)
        loaded = load_composition(path)
        assert loaded.to_wire() == sample_composition.to_wire()

    def test_round_trip_with_patches(self, sample_composition, tmp_path):
        edited = apply({"operation": "delete", "selector": {"by": "id", "id": "el_logo"}},
                       sample_composition).composition
        path = tmp_path / "doc.yaml"
        save_composition(edited, path)
        loaded = load_composition(path)
        assert loaded.version == 2
        assert loaded.patches[0].parent_id == "el_outro"
        assert loaded.patches[0].previous_state["id"] == "el_logo"

    def test_wire_names_on_disk(self, sample_composition, tmp_path):
        path = tmp_path / "doc.yaml"
        save_composition(sample_composition, path)
        raw = yaml.safe_load(path.read_text())
        first = raw["elements"][0]
        assert list(raw) == ["id", "version", "metadata", "elements", "patches"]
        assert first["from"] == 0
        assert first["durationInFrames"] == 90
        assert "label" in first
        assert "from_" not in first

    def test_json_loads(self, sample_composition, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text(json.dumps(sample_composition.to_wire()))
        assert load_composition(path).to_wire() == sample_composition.to_wire()

    def test_invalid_document(self):
        path = _write_yaml({"id": "c", "metadata": {"width": 1}})
        with pytest.raises(ValueError, match="Composition"):
            load_composition(path)

    def test_not_a_mapping(self):
        path = _write_yaml(["a", "b"])
        with pytest.raises(ValueError, match="top level must be a mapping"):
            load_composition(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_composition(tmp_path / "missing.yaml")


class TestPlanFiles:
    def test_plain(self):
        path = _write_yaml({"operation": "delete", "selector": {"by": "index", "index": 0}})
        assert load_plan(path) == {"operation": "delete", "selector": {"by": "index", "index": 0}}

    def test_config_paths(self):
        path = _write_yaml({
            "operation": "add",
            "changes": {"type": "video", "properties": {"src": "${media}/intro.mp4"}},
        })
        plan = load_plan(path, {"media": "/data"})
        assert plan["changes"]["properties"]["src"] == "/data/intro.mp4"

    def test_plan_paths_override(self):
        path = _write_yaml({
            "paths": {"media": "/local"},
            "operation": "add",
            "changes": {"type": "image", "properties": {"src": "${media}/logo.png"}},
        })
        plan = load_plan(path, {"media": "/data"})
        assert "paths" not in plan
        assert plan["changes"]["properties"]["src"] == "/local/logo.png"

    def test_unknown_variable(self):
        path = _write_yaml({"operation": "add",
                            "changes": {"type": "image", "properties": {"src": "${nope}/x"}}})
        with pytest.raises(ValueError, match="Unknown path variable"):
            load_plan(path)

    def test_loaded_plan_applies(self, empty_composition):
        path = _write_yaml({
            "operation": "add",
            "changes": {"type": "text", "label": "Hello", "properties": {"text": "Hi"}},
        })
        result = apply(load_plan(path), empty_composition)
        assert result.ok
