"""Tests for clipedit.selectors: resolution, candidates and suggestions."""

import pytest

from clipedit.model import ById, ByIndex, ByLabel, ByType, Composition, parse_selector
from clipedit.selectors import (
    absolute_starts,
    describe_candidates,
    describe_selector,
    find_by_id,
    resolve,
    suggest,
    walk,
)


def _ids(elements):
    return [el.id for el in elements]


class TestWalk:
    def test_pre_order(self, sample_composition):
        assert _ids(walk(sample_composition.elements)) == [
            "el_intro", "el_clip_a", "el_title", "el_clip_b", "el_music",
            "el_outro", "el_logo", "el_outro_text",
        ]

    def test_find_nested(self, sample_composition):
        assert find_by_id(sample_composition.elements, "el_logo").label == "Logo"

    def test_find_missing(self, sample_composition):
        assert find_by_id(sample_composition.elements, "el_nope") is None


class TestById:
    def test_top_level(self, sample_composition):
        assert _ids(resolve(ById(id="el_title"), sample_composition.elements)) == ["el_title"]

    def test_nested(self, sample_composition):
        assert _ids(resolve(ById(id="el_outro_text"), sample_composition.elements)) == [
            "el_outro_text"
        ]

    def test_missing_is_empty(self, sample_composition):
        assert resolve(ById(id="el_zzz"), sample_composition.elements) == []


class TestByLabel:
    def test_case_insensitive_substring(self, sample_composition):
        result = resolve(ByLabel(label="intro"), sample_composition.elements)
        assert _ids(result) == ["el_intro"]

    def test_multiple_matches_in_document_order(self, sample_composition):
        result = resolve(ByLabel(label="clip"), sample_composition.elements)
        assert _ids(result) == ["el_clip_a", "el_clip_b"]

    def test_matches_nested_labels(self, sample_composition):
        result = resolve(ByLabel(label="outro"), sample_composition.elements)
        assert _ids(result) == ["el_outro", "el_outro_text"]

    def test_exact(self, sample_composition):
        result = resolve(ByLabel(label="OUTRO", exact=True), sample_composition.elements)
        assert _ids(result) == ["el_outro"]

    def test_no_match(self, sample_composition):
        assert resolve(ByLabel(label="zzz"), sample_composition.elements) == []

    def test_unlabelled_elements_never_match(self, empty_composition):
        doc = Composition.model_validate({
            **empty_composition.to_wire(),
            "elements": [{"id": "el_1", "type": "shape", "durationInFrames": 30}],
        })
        assert resolve(ByLabel(label=""), doc.elements) == []


class TestByIndex:
    def test_top_level_only(self, sample_composition):
        assert _ids(resolve(ByIndex(index=5), sample_composition.elements)) == ["el_outro"]

    def test_out_of_range(self, sample_composition):
        assert resolve(ByIndex(index=6), sample_composition.elements) == []

    def test_negative(self, sample_composition):
        assert resolve(ByIndex(index=-1), sample_composition.elements) == []


class TestByType:
    def test_all_of_type_depth_first(self, sample_composition):
        result = resolve(ByType(element_type="text"), sample_composition.elements)
        assert _ids(result) == ["el_intro", "el_title", "el_outro_text"]

    def test_index_skips_other_types(self, sample_composition):
        # The Title card text sits between the two videos.
        result = resolve(ByType(element_type="video", index=1), sample_composition.elements)
        assert _ids(result) == ["el_clip_b"]

    def test_index_out_of_range(self, sample_composition):
        assert resolve(ByType(element_type="video", index=2), sample_composition.elements) == []

    def test_negative_index(self, sample_composition):
        assert resolve(ByType(element_type="video", index=-1), sample_composition.elements) == []

    def test_wire_form(self, sample_composition):
        selector = parse_selector({"by": "type", "type": "video", "index": 0})
        assert _ids(resolve(selector, sample_composition.elements)) == ["el_clip_a"]


class TestStability:
    @pytest.mark.parametrize("selector", [
        ById(id="el_logo"),
        ByLabel(label="clip"),
        ByIndex(index=2),
        ByType(element_type="text"),
    ])
    def test_repeated_resolution_identical(self, sample_composition, selector):
        first = _ids(resolve(selector, sample_composition.elements))
        for _ in range(5):
            assert _ids(resolve(selector, sample_composition.elements)) == first

    def test_unknown_selector_type(self, sample_composition):
        with pytest.raises(TypeError):
            resolve({"by": "id", "id": "el_intro"}, sample_composition.elements)


class TestCandidates:
    def test_fields(self, sample_composition):
        matches = resolve(ByLabel(label="clip"), sample_composition.elements)
        candidates = describe_candidates(matches, 30)
        assert candidates[0] == {
            "id": "el_clip_a",
            "label": "Clip A",
            "type": "video",
            "startTimecode": "0:03.0",
            "description": "video at frame 90 (5.0s)",
        }
        assert candidates[1]["startTimecode"] == "0:10.0"

    def test_unlabelled_gets_positional_label(self, empty_composition):
        doc = Composition.model_validate({
            **empty_composition.to_wire(),
            "elements": [{"id": "el_1", "type": "shape", "durationInFrames": 15}],
        })
        [candidate] = describe_candidates(doc.elements, 30)
        assert candidate["label"] == "shape #1"
        assert candidate["description"] == "shape at frame 0 (500ms)"

    def test_nested_start_is_absolute(self, sample_composition):
        matches = resolve(ByLabel(label="outro"), sample_composition.elements)
        candidates = describe_candidates(matches, 30, sample_composition.elements)
        assert [c["startTimecode"] for c in candidates] == ["0:14.0", "0:14.3"]
        assert candidates[1]["description"] == "text at frame 430 (1.7s)"

    def test_absolute_starts(self, sample_composition):
        starts = absolute_starts(sample_composition.elements)
        assert starts["el_outro"] == 420
        assert starts["el_logo"] == 420
        assert starts["el_outro_text"] == 430
        assert starts["el_clip_b"] == 300


class TestSuggest:
    def test_close_label(self, sample_composition):
        assert "Intro" in suggest(ByLabel(label="intr0"), sample_composition.elements)

    def test_nothing_close(self, sample_composition):
        assert suggest(ByLabel(label="zzz"), sample_composition.elements) == []

    def test_only_label_selectors(self, sample_composition):
        assert suggest(ById(id="el_intr"), sample_composition.elements) == []


class TestDescribeSelector:
    def test_forms(self):
        assert describe_selector(ById(id="el_1")) == "id 'el_1'"
        assert describe_selector(ByLabel(label="x")) == "label containing 'x'"
        assert describe_selector(ByLabel(label="x", exact=True)) == "label exactly 'x'"
        assert describe_selector(ByIndex(index=2)) == "top-level index 2"
        assert describe_selector(ByType(element_type="video")) == "type 'video'"
        assert describe_selector(ByType(element_type="video", index=1)) == "video #1"
