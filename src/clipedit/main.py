"""Subcommand dispatcher for clipedit.

Usage:
    clipedit new      composition.yaml --fps 30 --duration 300
    clipedit apply    composition.yaml plan.yaml [plan.yaml ...]
    clipedit reorder  composition.yaml el_a el_b el_c
    clipedit undo     composition.yaml --steps 1
    clipedit resolve  composition.yaml --label intro
    clipedit compile  composition.yaml --output Composition.tsx
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipedit",
        description="Selector-driven, undoable editing of video composition documents.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("new", help="Create an empty composition document")
    subparsers.add_parser("apply", help="Apply edit plan files to a composition")
    subparsers.add_parser("reorder", help="Reorder top-level elements")
    subparsers.add_parser("undo", help="Undo the most recent edits")
    subparsers.add_parser("resolve", help="List the elements a selector matches")
    subparsers.add_parser("compile", help="Compile a composition to a Remotion component")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "new":
        from .edit_cli import new_main
        new_main(remaining)
    elif parsed.command == "apply":
        from .edit_cli import apply_main
        apply_main(remaining)
    elif parsed.command == "reorder":
        from .edit_cli import reorder_main
        reorder_main(remaining)
    elif parsed.command == "undo":
        from .edit_cli import undo_main
        undo_main(remaining)
    elif parsed.command == "resolve":
        from .resolve_cli import main as resolve_main
        resolve_main(remaining)
    elif parsed.command == "compile":
        from .cli import main as compile_main
        compile_main(remaining)


if __name__ == "__main__":
    main()
