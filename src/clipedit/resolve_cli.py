"""CLI for previewing what a selector matches.

Usage:
    clipedit resolve composition.yaml --label intro
    clipedit resolve composition.yaml --label Intro --exact
    clipedit resolve composition.yaml --type video --type-index 1
    clipedit resolve composition.yaml --index 0
    clipedit resolve composition.yaml --label intro --at 0:01.5
"""

import argparse
import sys

from .animation import sample_animation
from .cli import add_common_arguments, configure_logging
from .common import timecode_to_frames
from .document import load_composition
from .model import ELEMENT_TYPES, ById, ByIndex, ByLabel, ByType
from .selectors import (
    absolute_starts,
    describe_candidates,
    describe_selector,
    resolve,
    suggest,
)


def main(args=None):
    parser = argparse.ArgumentParser(description="List the elements a selector matches.")
    parser.add_argument("composition", help="Composition YAML/JSON path")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--id", default=None)
    group.add_argument("--label", default=None)
    group.add_argument("--index", type=int, default=None)
    group.add_argument("--type", choices=ELEMENT_TYPES, default=None)
    parser.add_argument(
        "--exact", action="store_true",
        help="With --label: match the whole label (case-insensitive)",
    )
    parser.add_argument(
        "--type-index", type=int, default=None,
        help="With --type: position among elements of that type",
    )
    parser.add_argument(
        "--at", default=None, metavar="M:SS.s",
        help="Also print each match's animated values at this composition time",
    )
    add_common_arguments(parser)
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    if args.exact and args.label is None:
        parser.error("--exact requires --label")
    if args.type_index is not None and args.type is None:
        parser.error("--type-index requires --type")

    if args.id is not None:
        selector = ById(id=args.id)
    elif args.label is not None:
        selector = ByLabel(label=args.label, exact=args.exact)
    elif args.index is not None:
        selector = ByIndex(index=args.index)
    else:
        selector = ByType(element_type=args.type, index=args.type_index)

    composition = load_composition(args.composition)
    fps = composition.metadata.fps

    frame = None
    if args.at is not None:
        try:
            frame = timecode_to_frames(args.at, fps)
        except ValueError as e:
            parser.error(str(e))

    matches = resolve(selector, composition.elements)

    if not matches:
        print(f"No element matches {describe_selector(selector)}")
        suggestions = suggest(selector, composition.elements)
        if suggestions:
            print(f"Did you mean: {', '.join(suggestions)}?")
        sys.exit(1)

    print(f"{len(matches)} match(es) for {describe_selector(selector)}:")
    for c in describe_candidates(matches, fps, composition.elements):
        print(f"  {c['id']}  {c['label']}  [{c['description']}, starts {c['startTimecode']}]")

    if frame is not None:
        _print_values(matches, composition.elements, frame, args.at)


def _print_values(matches, elements, frame: int, timecode: str):
    """Sampled animation values for each match at an absolute frame."""
    starts = absolute_starts(elements)
    print(f"Animated values at {timecode} (frame {frame}):")
    for element in matches:
        if not element.animations:
            print(f"  {element.id}  (no animations)")
            continue
        for anim in element.animations:
            try:
                value = sample_animation(anim, frame - starts[element.id])
            except ValueError as e:
                print(f"  {element.id}  {anim.property}: {e}")
                continue
            if isinstance(value, float):
                value = round(value, 3)
            print(f"  {element.id}  {anim.property} = {value}")
