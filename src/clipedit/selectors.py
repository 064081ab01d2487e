"""Selector resolution: declarative element references to concrete elements.

resolve() is a pure function of (selector, elements): no hidden state, no
randomness, no I/O. Resolving the same selector against an unchanged
element tree always yields the same ordered list, which is what lets a
reference like "the second video" hit the same element on every retry.

Traversal order everywhere is depth-first pre-order: a grouping element
comes before its children, and children come before the parent's next
sibling.
"""

import difflib

from .common import format_duration, frames_to_timecode
from .model import ById, ByIndex, ByLabel, ByType


def walk(elements):
    """Yield every element in the tree, depth-first pre-order."""
    for element in elements:
        yield element
        yield from walk(element.child_elements)


def find_by_id(elements, element_id: str):
    """Return the element with *element_id* anywhere in the tree, or None."""
    for element in walk(elements):
        if element.id == element_id:
            return element
    return None


def resolve(selector, elements) -> list:
    """Resolve *selector* against *elements* (a composition's top level).

    Returns 0..N elements in document order:
      - ById: 0 or 1, searching nested children too.
      - ByLabel: case-insensitive substring match (equality with
        exact=True), whole tree.
      - ByIndex: position among top-level elements only.
      - ByType: whole tree filtered by type; with index, the single
        same-typed element at that position.
    Out-of-range indexes (including negative ones) yield no results.
    """
    if isinstance(selector, ById):
        found = find_by_id(elements, selector.id)
        return [found] if found is not None else []

    if isinstance(selector, ByLabel):
        needle = selector.label.casefold()
        matches = []
        for element in walk(elements):
            if element.label is None:
                continue
            label = element.label.casefold()
            if (label == needle) if selector.exact else (needle in label):
                matches.append(element)
        return matches

    if isinstance(selector, ByIndex):
        if 0 <= selector.index < len(elements):
            return [elements[selector.index]]
        return []

    if isinstance(selector, ByType):
        matches = [el for el in walk(elements) if el.type == selector.element_type]
        if selector.index is None:
            return matches
        if 0 <= selector.index < len(matches):
            return [matches[selector.index]]
        return []

    raise TypeError(f"Unknown selector type: {type(selector).__name__}")


def describe_selector(selector) -> str:
    """Short human-readable form, used in error messages."""
    if isinstance(selector, ById):
        return f"id '{selector.id}'"
    if isinstance(selector, ByLabel):
        mode = "exactly" if selector.exact else "containing"
        return f"label {mode} '{selector.label}'"
    if isinstance(selector, ByIndex):
        return f"top-level index {selector.index}"
    if selector.index is None:
        return f"type '{selector.element_type}'"
    return f"{selector.element_type} #{selector.index}"


def describe_candidates(matches, fps: float, elements=None) -> list[dict]:
    """Candidate records for disambiguation prompts.

    Pass the composition's top-level *elements* so nested matches report
    their start on the composition timeline rather than within their group.
    """
    starts = absolute_starts(elements) if elements is not None else {}
    candidates = []
    for n, el in enumerate(matches):
        start = starts.get(el.id, el.from_)
        candidates.append({
            "id": el.id,
            "label": el.label or f"{el.type} #{n + 1}",
            "type": el.type,
            "startTimecode": frames_to_timecode(start, fps),
            "description": (
                f"{el.type} at frame {start} "
                f"({format_duration(el.duration_in_frames, fps)})"
            ),
        })
    return candidates


def absolute_starts(elements, offset: int = 0) -> dict[str, int]:
    """Element id -> start frame on the composition timeline."""
    starts = {}
    for element in elements:
        start = offset + element.from_
        starts[element.id] = start
        starts.update(absolute_starts(element.child_elements, start))
    return starts


def suggest(selector, elements, limit: int = 3) -> list[str]:
    """Close label matches for a selector that found nothing.

    Only label selectors get suggestions; other kinds have nothing
    fuzzy to compare against.
    """
    if not isinstance(selector, ByLabel):
        return []
    labels = []
    for element in walk(elements):
        if element.label and element.label not in labels:
            labels.append(element.label)
    by_fold = {label.casefold(): label for label in labels}
    close = difflib.get_close_matches(
        selector.label.casefold(), list(by_fold), n=limit, cutoff=0.5,
    )
    return [by_fold[c] for c in close]
