"""Composition and plan files.

Compositions are stored as YAML in wire form (camelCase keys, ``from``,
None values dropped). JSON files load too, since YAML is a superset.

Plan file schema:
  paths:                       # optional, overrides config paths
    media: "/path/to/media"
  operation: add
  changes:
    type: video
    label: Intro
    properties:
      src: "${media}/intro.mp4"
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from .common import resolve_path_vars_deep
from .model import Composition
from .validation import summarize_validation_error


def _read_yaml(path: str | Path, what: str):
    with open(path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{what} {path}: top level must be a mapping")
    return raw


def load_composition(path: str | Path) -> Composition:
    """Load and validate a composition document.

    Raises:
        ValueError: Not a mapping, or fails model validation.
        FileNotFoundError: Missing file.
    """
    raw = _read_yaml(path, "Composition")
    try:
        return Composition.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(
            f"Composition {path}: {summarize_validation_error(exc)}"
        ) from None


def save_composition(composition: Composition, path: str | Path) -> None:
    """Write *composition* as YAML in document order."""
    with open(path, "w") as f:
        yaml.safe_dump(
            composition.to_wire(), f,
            sort_keys=False, allow_unicode=True, default_flow_style=False,
        )


def load_plan(path: str | Path, paths: dict[str, str] | None = None) -> dict:
    """Load an edit plan, resolving ${var} references.

    The plan's own ``paths`` section is merged over *paths* and removed
    from the returned dict. Structural validation is left to the
    executor so that rejections carry a typed error kind.

    Raises:
        ValueError: Not a mapping, or an unknown path variable.
        FileNotFoundError: Missing file.
    """
    raw = _read_yaml(path, "Plan")
    variables = {**(paths or {}), **(raw.pop("paths", None) or {})}
    return resolve_path_vars_deep(raw, variables)
