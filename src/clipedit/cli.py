"""CLI for compiling a composition to a Remotion TSX module.

Usage:
    # Write the component to a file
    clipedit compile composition.yaml --output Composition.tsx

    # Print to stdout
    clipedit compile composition.yaml

    # Validate only (no output)
    clipedit compile composition.yaml --validate
"""

import argparse
import logging
import sys
from pathlib import Path

from .compiler import compile_with_diagnostics
from .document import load_composition
from .errors import CompileError
from .selectors import walk
from .validation import validate_composition


# ── Shared CLI plumbing ───────────────────────────────────────────


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML settings file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log engine decisions to stderr",
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── compile ───────────────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Compile a composition document to a Remotion component.",
    )
    parser.add_argument("composition", help="Path to composition YAML/JSON")
    parser.add_argument(
        "--output", default=None,
        help="Output .tsx path (default: stdout)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate the document only, don't compile",
    )
    add_common_arguments(parser)
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    composition = load_composition(args.composition)

    if args.validate:
        problems = validate_composition(composition)
        if problems:
            print(f"Composition invalid: {len(problems)} problem(s)")
            for p in problems:
                print(f"  - {p}")
            sys.exit(1)
        count = len(list(walk(composition.elements)))
        print(f"Composition valid: {count} elements, version {composition.version}")
        return

    try:
        result = compile_with_diagnostics(composition)
    except CompileError as exc:
        print(str(exc))
        sys.exit(1)

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if args.output is None:
        sys.stdout.write(result.code)
        return

    Path(args.output).write_text(result.code)
    print(f"Done: {args.output}")


if __name__ == "__main__":
    main()
