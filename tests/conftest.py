"""Shared test fixtures for clipedit tests."""

import pytest

from clipedit.model import Composition


def _element(element_id, element_type, label, start, duration, **properties):
    data = {
        "id": element_id,
        "type": element_type,
        "from": start,
        "durationInFrames": duration,
        "properties": properties,
    }
    if label is not None:
        data["label"] = label
    return data


@pytest.fixture
def sample_composition():
    """A 30fps, 600-frame document with every element type.

    Top level (document order): Intro text, Clip A video, Title card
    text, Clip B video, Music audio, an Outro sequence holding a Logo
    image and an Outro text.
    """
    outro = _element("el_outro", "sequence", "Outro", 420, 60)
    outro["children"] = [
        _element("el_logo", "image", "Logo", 0, 60, src="logo.png"),
        _element("el_outro_text", "text", "Outro text", 10, 50, text="Thanks"),
    ]
    return Composition.model_validate({
        "id": "comp_sample",
        "version": 1,
        "metadata": {"width": 1920, "height": 1080, "fps": 30, "durationInFrames": 600},
        "elements": [
            _element("el_intro", "text", "Intro", 0, 90, text="Welcome", color="#ffffff"),
            _element("el_clip_a", "video", "Clip A", 90, 150, src="a.mp4", volume=0.8),
            _element("el_title", "text", "Title card", 240, 60, text="Chapter 1"),
            _element("el_clip_b", "video", "Clip B", 300, 120, src="b.mp4"),
            _element("el_music", "audio", "Music", 0, 600, src="music.mp3"),
            outro,
        ],
    })


@pytest.fixture
def empty_composition():
    return Composition.model_validate({
        "id": "comp_empty",
        "metadata": {"width": 1920, "height": 1080, "fps": 30, "durationInFrames": 300},
    })
