"""Edit plan and composition validation.

Plans come from an external planner and are untrusted. Validation happens
in layers, each raising a typed EditError before anything is mutated:

  1. parse_plan(): structural shape (operation, selector, changes keys).
  2. Selector resolution (executor): NotFound / ambiguous.
  3. check_timing() / check_properties() / check_animations(): numeric
     bounds and value formats against the resolved target.

validate_composition() is the whole-document check used by the compiler
and the CLI; it reports every problem at once instead of stopping at the
first.
"""

import math

from pydantic import ValidationError

from .animation import VALID_EASINGS, is_known_easing
from .common import is_valid_color
from .errors import (
    InvalidRangeError,
    MalformedPlanError,
    OutOfBoundsError,
)
from .model import GROUP_TYPES, PROPERTIES_MODELS, PROPERTY_WIRE_NAMES, EditPlan
from .selectors import walk


# ── Bounds ────────────────────────────────────────────────────────

UNIT_RANGE_PROPERTIES = {"volume", "opacity"}   # [0, 1]
MAX_PLAYBACK_RATE = 10                          # (0, 10]
COLOR_PROPERTIES = {"color", "backgroundColor", "fill", "stroke"}
TRANSFORM_PROPERTIES = {"scale", "rotation", "translateX", "translateY"}
MOVE_FIELDS = {"from_", "duration_in_frames"}


def summarize_validation_error(exc: ValidationError) -> str:
    """Collapse a pydantic ValidationError into one line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "(root)"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


# ── Layer 1: structure ────────────────────────────────────────────


def parse_plan(raw) -> EditPlan:
    """Validate an untrusted plan (dict or EditPlan) into an EditPlan.

    Raises:
        MalformedPlanError: missing/unknown operation, missing selector for
            update/delete/move, selector on add, unknown change keys,
            wrong value types, or changes not allowed for the operation.
    """
    if isinstance(raw, EditPlan):
        plan = raw
    else:
        if not isinstance(raw, dict):
            raise MalformedPlanError(
                f"Plan must be a mapping, got {type(raw).__name__}"
            )
        if "operation" not in raw:
            raise MalformedPlanError("Plan: missing required field 'operation'")
        if raw.get("changes") is None and "changes" in raw:
            raw = {**raw, "changes": {}}
        try:
            plan = EditPlan.model_validate(raw)
        except ValidationError as exc:
            raise MalformedPlanError(
                f"Plan: {summarize_validation_error(exc)}"
            ) from None

    op = plan.operation
    changes = plan.changes

    if op == "add":
        if plan.selector is not None:
            raise MalformedPlanError("Plan: add targets the document and takes no selector")
        if changes.type is None:
            raise MalformedPlanError("Plan: add requires changes.type")
        if changes.children is not None and changes.type not in GROUP_TYPES:
            raise MalformedPlanError(
                f"Plan: only {sorted(GROUP_TYPES)} elements can have children"
            )
    else:
        if plan.selector is None:
            raise MalformedPlanError(f"Plan: {op} requires a selector")
        if changes.type is not None:
            raise MalformedPlanError(f"Plan: {op} cannot change an element's type")
        if changes.children is not None:
            raise MalformedPlanError(f"Plan: {op} cannot replace children")

    if op == "move":
        extra = {
            name for name in changes.model_fields_set - MOVE_FIELDS
            if getattr(changes, name) is not None
        }
        if extra:
            raise MalformedPlanError(
                f"Plan: move only changes 'from'/'durationInFrames', got {sorted(extra)}"
            )
        if changes.from_ is None and changes.duration_in_frames is None:
            raise MalformedPlanError("Plan: move requires 'from' or 'durationInFrames'")

    if op in ("update", "move") and not _has_any_change(changes):
        raise MalformedPlanError(f"Plan: {op} has no changes")

    return plan


def _has_any_change(changes) -> bool:
    return any(getattr(changes, name) is not None for name in changes.model_fields_set)


# ── Layer 3: values ───────────────────────────────────────────────


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def check_timing(from_: int, duration_in_frames: int, prefix: str) -> None:
    """from >= 0 (OutOfBounds) and durationInFrames > 0 (InvalidRange)."""
    if from_ < 0:
        raise OutOfBoundsError(f"{prefix}: 'from' must be >= 0, got {from_}")
    if duration_in_frames <= 0:
        raise InvalidRangeError(
            f"{prefix}: 'durationInFrames' must be > 0, got {duration_in_frames}"
        )


def check_property_value(key: str, value, prefix: str) -> None:
    """Bounds and format checks for a single property value."""
    if key in UNIT_RANGE_PROPERTIES or key == "playbackRate":
        if not _is_number(value):
            raise MalformedPlanError(f"{prefix}: '{key}' must be a number, got {value!r}")
        if key in UNIT_RANGE_PROPERTIES and not (0 <= value <= 1):
            raise OutOfBoundsError(f"{prefix}: '{key}' must be in [0, 1], got {value}")
        if key == "playbackRate" and not (0 < value <= MAX_PLAYBACK_RATE):
            raise OutOfBoundsError(
                f"{prefix}: 'playbackRate' must be in (0, {MAX_PLAYBACK_RATE}], got {value}"
            )
    elif key in COLOR_PROPERTIES:
        if not is_valid_color(value):
            raise MalformedPlanError(f"{prefix}: '{key}' is not a valid color: {value!r}")
    elif key in TRANSFORM_PROPERTIES:
        if not _is_number(value):
            raise MalformedPlanError(f"{prefix}: '{key}' must be a number, got {value!r}")


def check_property_name(key: str, prefix: str) -> None:
    """Reject the snake_case spelling of a camelCase property."""
    if key in PROPERTY_WIRE_NAMES:
        raise MalformedPlanError(
            f"{prefix}: unknown property '{key}', use '{PROPERTY_WIRE_NAMES[key]}'"
        )


def check_properties(properties: dict, prefix: str) -> None:
    """None values are removals and are not checked."""
    for key, value in properties.items():
        check_property_name(key, prefix)
        if value is None:
            continue
        check_property_value(key, value, prefix)


def build_properties(element_type: str, properties: dict, prefix: str):
    """Validate a property bag into the typed model for *element_type*."""
    model = PROPERTIES_MODELS[element_type]
    try:
        return model.model_validate(properties)
    except ValidationError as exc:
        raise MalformedPlanError(
            f"{prefix}: invalid {element_type} properties: "
            f"{summarize_validation_error(exc)}"
        ) from None


def check_animations(animations, prefix: str) -> None:
    """Keyframe frames >= 0, known easing, consistent value types.

    Animations of bounded properties (opacity, volume, playbackRate)
    must keep every keyframe value inside the property's bounds.
    """
    for i, anim in enumerate(animations):
        a_prefix = f"{prefix}, animation {i} ({anim.property})"
        check_property_name(anim.property, a_prefix)
        if len(anim.keyframes) < 2:
            raise MalformedPlanError(f"{a_prefix}: needs at least 2 keyframes")
        if not is_known_easing(anim.easing):
            raise MalformedPlanError(
                f"{a_prefix}: unknown easing '{anim.easing}'. "
                f"Valid: {sorted(VALID_EASINGS)}"
            )
        kinds = {isinstance(kf.value, str) for kf in anim.keyframes}
        if len(kinds) > 1:
            raise MalformedPlanError(f"{a_prefix}: keyframes mix numbers and strings")
        for kf in anim.keyframes:
            if kf.frame < 0:
                raise OutOfBoundsError(
                    f"{a_prefix}: keyframe frame must be >= 0, got {kf.frame}"
                )
            if isinstance(kf.value, str):
                if not is_valid_color(kf.value):
                    raise MalformedPlanError(
                        f"{a_prefix}: string keyframe values must be colors, "
                        f"got {kf.value!r}"
                    )
            else:
                check_property_value(anim.property, kf.value, a_prefix)


# ── Whole document ────────────────────────────────────────────────


def validate_metadata(metadata) -> list[str]:
    problems = []
    if metadata.width <= 0:
        problems.append(f"metadata.width must be positive, got {metadata.width}")
    if metadata.height <= 0:
        problems.append(f"metadata.height must be positive, got {metadata.height}")
    if metadata.fps <= 0:
        problems.append(f"metadata.fps must be positive, got {metadata.fps}")
    if metadata.duration_in_frames <= 0:
        problems.append(
            f"metadata.durationInFrames must be positive, "
            f"got {metadata.duration_in_frames}"
        )
    return problems


def validate_composition(composition) -> list[str]:
    """Return every structural problem in *composition* (empty if valid)."""
    problems = validate_metadata(composition.metadata)
    seen = set()
    for element in walk(composition.elements):
        if not element.id:
            problems.append("Element missing id")
        elif element.id in seen:
            problems.append(f"Duplicate element id '{element.id}'")
        seen.add(element.id)
        if element.from_ < 0:
            problems.append(f"Element {element.id}: 'from' cannot be negative")
        if element.duration_in_frames <= 0:
            problems.append(f"Element {element.id}: durationInFrames must be positive")
    return problems
