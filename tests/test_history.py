"""Tests for clipedit.history: undo from the patch log, session redo."""

import pytest

from clipedit.errors import ErrorKind
from clipedit.executor import Status, apply, reorder
from clipedit.history import EditSession, undo
from clipedit.model import Composition, parse_element
from clipedit.selectors import find_by_id


def _elements(doc):
    return doc.to_wire()["elements"]


def _by_id(element_id):
    return {"by": "id", "id": element_id}


class TestUndo:
    @pytest.mark.parametrize("plan", [
        {"operation": "update", "selector": _by_id("el_clip_a"),
         "changes": {"label": "Renamed", "properties": {"volume": 0.2}}},
        {"operation": "update", "selector": _by_id("el_logo"),
         "changes": {"properties": {"opacity": 0.3}}},
        {"operation": "move", "selector": _by_id("el_title"),
         "changes": {"from": 10, "durationInFrames": 20}},
        {"operation": "delete", "selector": _by_id("el_clip_b")},
        {"operation": "delete", "selector": _by_id("el_outro")},
        {"operation": "delete", "selector": _by_id("el_outro_text")},
        {"operation": "add", "changes": {"type": "shape", "label": "Box"}},
    ])
    def test_restores_elements(self, sample_composition, plan):
        edited = apply(plan, sample_composition)
        assert edited.ok
        result = undo(edited.composition)
        assert result.ok
        assert _elements(result.composition) == _elements(sample_composition)

    def test_restores_reorder(self, sample_composition):
        ids = [el.id for el in sample_composition.elements]
        edited = reorder(sample_composition, list(reversed(ids)))
        result = undo(edited.composition)
        assert [el.id for el in result.composition.elements] == ids

    def test_pops_patch_and_bumps_version(self, sample_composition):
        edited = apply({"operation": "delete", "selector": _by_id("el_intro")},
                       sample_composition)
        result = undo(edited.composition)
        assert result.composition.patches == []
        assert result.composition.version == 3
        assert result.receipt == 'Undid: Deleted "Intro"'

    def test_undo_is_lifo(self, sample_composition):
        first = apply({"operation": "update", "selector": _by_id("el_intro"),
                       "changes": {"label": "One"}}, sample_composition).composition
        second = apply({"operation": "update", "selector": _by_id("el_intro"),
                        "changes": {"label": "Two"}}, first).composition
        once = undo(second).composition
        assert find_by_id(once.elements, "el_intro").label == "One"
        twice = undo(once).composition
        assert find_by_id(twice.elements, "el_intro").label == "Intro"

    def test_empty_log(self, sample_composition):
        result = undo(sample_composition)
        assert result.status == Status.ERROR
        assert result.error_kind == ErrorKind.EMPTY_HISTORY

    def test_input_untouched(self, sample_composition):
        edited = apply({"operation": "delete", "selector": _by_id("el_intro")},
                       sample_composition).composition
        undo(edited)
        assert len(edited.patches) == 1
        assert find_by_id(edited.elements, "el_intro") is None

    def test_delete_reinserted_at_original_position(self, sample_composition):
        edited = apply({"operation": "delete", "selector": _by_id("el_title")},
                       sample_composition).composition
        restored = undo(edited).composition
        assert restored.elements[2].id == "el_title"


class TestEditSession:
    def test_undo_redo_round_trip(self, sample_composition):
        session = EditSession(sample_composition)
        session.apply({"operation": "update", "selector": {"by": "label", "label": "intro"},
                       "changes": {"properties": {"color": "#00ff00"}}})
        edited = _elements(session.composition)

        assert session.undo().ok
        assert _elements(session.composition) == _elements(sample_composition)
        assert session.can_redo

        result = session.redo()
        assert result.ok
        assert result.receipt.startswith("Redid: Updated")
        assert _elements(session.composition) == edited
        assert not session.can_redo

    def test_redo_add_keeps_id(self, empty_composition):
        session = EditSession(empty_composition)
        added = session.apply({"operation": "add", "changes": {"type": "shape"}})
        new_id = added.patch.target_id
        session.undo()
        assert session.composition.elements == []
        session.redo()
        assert [el.id for el in session.composition.elements] == [new_id]

    def test_redo_add_keeps_child_ids(self, empty_composition):
        session = EditSession(empty_composition)
        session.apply({"operation": "add", "changes": {
            "type": "sequence", "label": "Group",
            "children": [{"type": "text", "label": "Kid", "properties": {"text": "a"}}],
        }})
        kid_id = session.composition.elements[0].children[0].id
        session.apply({
            "operation": "update",
            "selector": {"by": "label", "label": "Kid"},
            "changes": {"properties": {"color": "#ff0000"}},
        })
        session.undo()
        session.undo()
        assert session.composition.elements == []

        assert session.redo().ok
        assert session.composition.elements[0].children[0].id == kid_id
        result = session.redo()
        assert result.ok
        kid = find_by_id(session.composition.elements, kid_id)
        assert kid.properties.color == "#ff0000"

    def test_add_patch_records_created_element(self, empty_composition):
        result = apply({"operation": "add", "changes": {
            "type": "group", "children": [{"type": "shape"}],
        }}, empty_composition)
        created = result.patch.created
        group = result.composition.elements[0]
        assert created["id"] == group.id
        assert created["children"][0]["id"] == group.children[0].id

    def test_redo_add_refuses_taken_child_id(self, empty_composition):
        session = EditSession(empty_composition)
        session.apply({"operation": "add", "changes": {
            "type": "group", "children": [{"type": "shape"}],
        }})
        child_id = session.composition.elements[0].children[0].id
        session.undo()
        session.composition = Composition.model_validate({
            **session.composition.to_wire(),
            "elements": [{"id": child_id, "type": "shape", "durationInFrames": 10}],
        })
        result = session.redo()
        assert result.error_kind == ErrorKind.MALFORMED
        assert session.can_redo

    def test_reorder_clears_redo(self, sample_composition):
        session = EditSession(sample_composition)
        session.apply({"operation": "update", "selector": {"by": "index", "index": 0},
                       "changes": {"label": "First"}})
        session.undo()
        ids = [el.id for el in session.composition.elements]
        session.reorder(list(reversed(ids)))
        assert not session.can_redo

    def test_new_edit_clears_redo(self, sample_composition):
        session = EditSession(sample_composition)
        session.apply({"operation": "delete", "selector": _by_id("el_intro")})
        session.undo()
        session.apply({"operation": "delete", "selector": _by_id("el_music")})
        assert not session.can_redo
        assert session.redo().error_kind == ErrorKind.EMPTY_HISTORY

    def test_redo_targets_recorded_element(self, sample_composition):
        session = EditSession(sample_composition)
        session.apply({"operation": "move", "selector": {"by": "type", "type": "video",
                                                          "index": 1},
                       "changes": {"from": 0}})
        session.undo()
        result = session.redo()
        assert result.ok
        assert find_by_id(session.composition.elements, "el_clip_b").from_ == 0
        assert result.patch.target_id == "el_clip_b"

    def test_failed_redo_keeps_stack(self, sample_composition):
        session = EditSession(sample_composition)
        session.apply({"operation": "add", "changes": {"type": "shape"}})
        undone = session.undo()
        # An element with the re-added id appeared since the undo.
        clash = parse_element({"id": undone.patch.target_id, "type": "shape",
                               "durationInFrames": 10})
        session.composition = session.composition.model_copy(update={"elements": [clash]})
        result = session.redo()
        assert result.error_kind == ErrorKind.MALFORMED
        assert session.can_redo

    def test_empty_undo(self, sample_composition):
        session = EditSession(sample_composition)
        assert not session.can_undo
        assert session.undo().error_kind == ErrorKind.EMPTY_HISTORY

    def test_versions_increase(self, sample_composition):
        session = EditSession(sample_composition)
        session.apply({"operation": "delete", "selector": _by_id("el_intro")})
        session.undo()
        session.redo()
        assert session.composition.version == 4

    def test_default_duration(self, empty_composition):
        session = EditSession(empty_composition, default_duration=12)
        session.apply({"operation": "add", "changes": {"type": "shape"}})
        assert session.composition.elements[0].duration_in_frames == 12
