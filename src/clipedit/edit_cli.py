"""CLI for editing composition documents.

Usage:
    # Create an empty composition
    clipedit new composition.yaml --fps 30 --duration 300

    # Apply one or more plan files in order (all or nothing)
    clipedit apply composition.yaml add_intro.yaml trim_clip.yaml

    # Re-run after an ambiguous selector, naming the element
    clipedit apply composition.yaml trim_clip.yaml --resolved-id el_3f2a...

    # Reorder top-level elements (back to front)
    clipedit reorder composition.yaml el_a el_b el_c

    # Undo the last two edits
    clipedit undo composition.yaml --steps 2
"""

import argparse
import sys
from pathlib import Path

from .cli import add_common_arguments, configure_logging
from .config import load_config
from .document import load_composition, load_plan, save_composition
from .executor import Status
from .history import EditSession
from .model import new_composition


def _report_failure(result) -> None:
    """Print an ambiguous or error result and exit non-zero."""
    if result.status == Status.AMBIGUOUS:
        print(f"Ambiguous: {len(result.candidates)} elements match. "
              f"Re-run with --resolved-id ID:")
        for c in result.candidates:
            print(f"  {c['id']}  {c['label']}  [{c['description']}, starts {c['startTimecode']}]")
    else:
        print(f"Error ({result.error_kind.value}): {result.message}")
    sys.exit(1)


def _open_session(args, config: dict) -> EditSession:
    composition = load_composition(args.composition)
    expected = getattr(args, "expect_version", None)
    if expected is not None and composition.version != expected:
        print(f"Error: {args.composition} is at version {composition.version}, "
              f"expected {expected}")
        sys.exit(1)
    return EditSession(
        composition,
        default_duration=config["edit"]["defaultDurationInFrames"],
    )


# ── new ───────────────────────────────────────────────────────────


def new_main(args=None):
    parser = argparse.ArgumentParser(description="Create an empty composition document.")
    parser.add_argument("composition", help="Output composition YAML path")
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--fps", type=int, default=None)
    parser.add_argument(
        "--duration", type=int, default=None,
        help="Duration in frames",
    )
    parser.add_argument("--id", default=None, help="Composition id (default: generated)")
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite an existing file",
    )
    add_common_arguments(parser)
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    if Path(args.composition).exists() and not args.force:
        parser.error(f"{args.composition} exists (use --force to overwrite)")

    defaults = load_config(args.config)["composition"]

    def pick(value, key):
        return defaults[key] if value is None else value

    composition = new_composition(
        width=pick(args.width, "width"),
        height=pick(args.height, "height"),
        fps=pick(args.fps, "fps"),
        duration_in_frames=pick(args.duration, "durationInFrames"),
        composition_id=args.id,
    )
    save_composition(composition, args.composition)
    meta = composition.metadata
    print(f"Created {composition.id}: {meta.width}x{meta.height} @ {meta.fps}fps, "
          f"{meta.duration_in_frames} frames")


# ── apply ─────────────────────────────────────────────────────────


def apply_main(args=None):
    parser = argparse.ArgumentParser(description="Apply edit plan files to a composition.")
    parser.add_argument("composition", help="Composition YAML path (updated in place)")
    parser.add_argument("plans", nargs="+", help="Plan YAML/JSON files, applied in order")
    parser.add_argument(
        "--resolved-id", default=None,
        help="Element id chosen after an ambiguous result (single plan only)",
    )
    parser.add_argument(
        "--expect-version", type=int, default=None,
        help="Refuse to edit unless the document is at this version",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Validate and report without writing the document",
    )
    add_common_arguments(parser)
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    if args.resolved_id is not None and len(args.plans) > 1:
        parser.error("--resolved-id applies to a single plan")

    config = load_config(args.config)
    session = _open_session(args, config)
    for plan_path in args.plans:
        plan = load_plan(plan_path, config["paths"])
        result = session.apply(plan, resolved_id=args.resolved_id)
        if not result.ok:
            print(f"{plan_path}: not applied")
            _report_failure(result)
        print(result.receipt)

    if args.dry_run:
        print(f"Dry run: {args.composition} unchanged")
        return
    save_composition(session.composition, args.composition)
    print(f"Saved {args.composition} (version {session.composition.version})")


# ── reorder ───────────────────────────────────────────────────────


def reorder_main(args=None):
    parser = argparse.ArgumentParser(description="Reorder top-level elements.")
    parser.add_argument("composition", help="Composition YAML path (updated in place)")
    parser.add_argument("ids", nargs="+", help="Every top-level element id, back to front")
    parser.add_argument("--expect-version", type=int, default=None)
    add_common_arguments(parser)
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    session = _open_session(args, load_config(args.config))
    result = session.reorder(args.ids)
    if not result.ok:
        _report_failure(result)
    save_composition(session.composition, args.composition)
    print(result.receipt)


# ── undo ──────────────────────────────────────────────────────────


def undo_main(args=None):
    parser = argparse.ArgumentParser(description="Undo the most recent edits.")
    parser.add_argument("composition", help="Composition YAML path (updated in place)")
    parser.add_argument(
        "--steps", type=int, default=1,
        help="Number of patches to undo (default: 1)",
    )
    parser.add_argument("--expect-version", type=int, default=None)
    add_common_arguments(parser)
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    if args.steps < 1:
        parser.error("--steps must be >= 1")

    session = _open_session(args, load_config(args.config))
    for _ in range(args.steps):
        result = session.undo()
        if not result.ok:
            _report_failure(result)
        print(result.receipt)
    save_composition(session.composition, args.composition)
