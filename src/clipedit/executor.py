"""Edit plan executor.

apply() validates and applies one add/update/delete/move plan to a
composition and returns an ExecutionResult. The input composition is never
mutated: on success the result carries a new composition value (version
bumped, patch appended); on rejection or ambiguity it carries nothing and
the caller keeps the original.

Flow for update/delete/move:
  1. parse_plan(): structural validation (Malformed).
  2. Target: a caller-supplied resolved_id from a disambiguation round,
     or the plan's selector resolved against the current tree.
     0 matches -> NotFound, >1 -> ambiguous with candidates.
  3. Bounds/format checks on the changes (OutOfBounds, InvalidRange,
     Malformed), then the edit itself.

reorder() is the bulk z-order operation: it accepts a complete ordering
of the top-level ids and nothing else.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import ValidationError

from .common import format_duration, frames_to_timecode, generate_id
from .errors import (
    EditError,
    ElementNotFoundError,
    ErrorKind,
    InvalidRangeError,
    MalformedPlanError,
)
from .model import (
    GROUP_TYPES,
    ById,
    Composition,
    EditPlan,
    Patch,
    PlanChanges,
    parse_element,
)
from .selectors import (
    describe_candidates,
    describe_selector,
    find_by_id,
    resolve,
    suggest,
    walk,
)
from .validation import (
    build_properties,
    check_animations,
    check_properties,
    check_timing,
    parse_plan,
    summarize_validation_error,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_IN_FRAMES = 90  # 3 seconds at 30fps


class Status(str, Enum):
    SUCCESS = "success"
    AMBIGUOUS = "ambiguous"
    ERROR = "error"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one edit.

    Attributes:
        status: success, ambiguous or error.
        composition: The updated composition (success only).
        patch: The patch appended to composition.patches (success only).
        receipt: Short human-readable confirmation (success only).
        candidates: Disambiguation records {id, label, type,
            startTimecode, description} (ambiguous only).
        error_kind: Typed rejection reason (error only).
        message: Error detail (error only).
        suggestions: Close label matches for NotFound label selectors.
    """

    status: Status
    composition: Composition | None = None
    patch: Patch | None = None
    receipt: str | None = None
    candidates: list[dict] = field(default_factory=list)
    error_kind: ErrorKind | None = None
    message: str | None = None
    suggestions: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == Status.SUCCESS


def rejected(exc: EditError) -> ExecutionResult:
    logger.info("Edit rejected (%s): %s", exc.kind.value, exc)
    return ExecutionResult(
        status=Status.ERROR,
        error_kind=exc.kind,
        message=str(exc),
        suggestions=list(exc.suggestions),
    )


# ── Public API ────────────────────────────────────────────────────


def apply(
    plan,
    composition: Composition,
    resolved_id: str | None = None,
    default_duration: int = DEFAULT_DURATION_IN_FRAMES,
) -> ExecutionResult:
    """Validate and apply *plan* (an EditPlan or untrusted dict).

    Args:
        plan: The edit request.
        composition: Current document; never mutated.
        resolved_id: Element id chosen by the user after an ambiguous
            result. Bypasses selector resolution but must still exist.
        default_duration: durationInFrames for added elements that omit it.

    Returns:
        ExecutionResult with status success, ambiguous or error.
    """
    try:
        plan = parse_plan(plan)
        if plan.operation == "add":
            return _execute_add(plan, composition, default_duration)

        matches = _resolve_target(plan, composition, resolved_id)
        if len(matches) > 1:
            logger.info(
                "Selector %s is ambiguous (%d matches)",
                describe_selector(plan.selector), len(matches),
            )
            return ExecutionResult(
                status=Status.AMBIGUOUS,
                candidates=describe_candidates(
                    matches, composition.metadata.fps, composition.elements,
                ),
            )

        target = matches[0]
        if plan.operation == "delete":
            return _execute_delete(plan, composition, target)
        return _execute_update(plan, composition, target)
    except EditError as exc:
        return rejected(exc)


def reorder(composition: Composition, element_ids) -> ExecutionResult:
    """Reorder top-level elements to exactly *element_ids*.

    Rejected unless *element_ids* is a permutation of the current
    top-level ids: no additions, omissions or duplicates.
    """
    try:
        return _execute_reorder(composition, list(element_ids))
    except EditError as exc:
        return rejected(exc)


def replay(
    patch: Patch,
    composition: Composition,
    default_duration: int = DEFAULT_DURATION_IN_FRAMES,
) -> ExecutionResult:
    """Re-apply a patch's forward changes against the current document.

    The target is addressed by the id recorded in the patch, never by its
    original (possibly positional) selector. An add reinserts the recorded
    element with its original ids. The result carries a fresh patch with
    a fresh previous_state.
    """
    try:
        if patch.operation == "reorder":
            return _execute_reorder(composition, list(patch.changes.get("order", [])))

        if patch.operation == "add":
            if patch.created is None:
                if find_by_id(composition.elements, patch.target_id) is not None:
                    raise MalformedPlanError(
                        f"Cannot re-add element {patch.target_id}: id already present"
                    )
                plan = parse_plan({"operation": "add", "changes": patch.changes})
                return _execute_add(plan, composition, default_duration,
                                    element_id=patch.target_id)
            element = parse_element(patch.created)
            present = [el.id for el in walk([element])
                       if find_by_id(composition.elements, el.id) is not None]
            if present:
                raise MalformedPlanError(
                    f"Cannot re-add element {element.id}: ids already present {present}"
                )
            return _commit_add(composition, element, patch.changes)

        plan = {
            "operation": patch.operation,
            "selector": ById(id=patch.target_id).to_wire(),
            "changes": patch.changes,
        }
        return apply(plan, composition, resolved_id=patch.target_id,
                     default_duration=default_duration)
    except EditError as exc:
        return rejected(exc)


# ── Target resolution ─────────────────────────────────────────────


def _resolve_target(plan: EditPlan, composition: Composition, resolved_id: str | None) -> list:
    if resolved_id is not None:
        found = find_by_id(composition.elements, resolved_id)
        if found is None:
            raise ElementNotFoundError(f"Element {resolved_id} no longer exists")
        return [found]

    matches = resolve(plan.selector, composition.elements)
    logger.debug(
        "Resolved %s to %s", describe_selector(plan.selector), [m.id for m in matches],
    )
    if not matches:
        suggestions = suggest(plan.selector, composition.elements)
        msg = f"No element found matching {describe_selector(plan.selector)}"
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"
        raise ElementNotFoundError(msg, suggestions=suggestions)
    return matches


# ── Tree helpers (pure) ───────────────────────────────────────────


def replace_element(elements: list, element_id: str, new_element) -> list:
    result = []
    for el in elements:
        if el.id == element_id:
            result.append(new_element)
        elif el.child_elements:
            result.append(el.model_copy(
                update={"children": replace_element(el.child_elements, element_id, new_element)}
            ))
        else:
            result.append(el)
    return result


def remove_element(elements: list, element_id: str, parent_id: str | None = None):
    """Return (new_elements, removed, parent_id, index); removed is None if absent."""
    for i, el in enumerate(elements):
        if el.id == element_id:
            return elements[:i] + elements[i + 1:], el, parent_id, i
    for i, el in enumerate(elements):
        if el.child_elements:
            children, removed, pid, idx = remove_element(el.child_elements, element_id, el.id)
            if removed is not None:
                updated = el.model_copy(update={"children": children})
                return elements[:i] + [updated] + elements[i + 1:], removed, pid, idx
    return elements, None, None, None


def insert_element(elements: list, element, parent_id: str | None, index: int | None) -> list:
    """Insert *element* under *parent_id* at *index* (clamped).

    A missing parent (deleted since) falls back to the top level.
    """
    if parent_id is not None and find_by_id(elements, parent_id) is not None:
        return _insert_under(elements, element, parent_id, index)
    pos = len(elements) if index is None else max(0, min(index, len(elements)))
    return elements[:pos] + [element] + elements[pos:]


def _insert_under(elements: list, element, parent_id: str, index: int | None) -> list:
    result = []
    for el in elements:
        if el.id == parent_id:
            children = insert_element(el.child_elements, element, None, index)
            result.append(el.model_copy(update={"children": children}))
        elif el.child_elements:
            result.append(el.model_copy(
                update={"children": _insert_under(el.child_elements, element, parent_id, index)}
            ))
        else:
            result.append(el)
    return result


def _commit(composition: Composition, elements: list, patch: Patch) -> Composition:
    return composition.model_copy(update={
        "elements": elements,
        "version": composition.version + 1,
        "patches": [*composition.patches, patch],
    })


def _new_patch(composition: Composition, operation: str, **fields) -> Patch:
    taken = {p.id for p in composition.patches}
    return Patch(
        id=generate_id("patch", taken),
        timestamp=datetime.now(timezone.utc),
        operation=operation,
        **fields,
    )


def _success(composition: Composition, elements: list, patch: Patch) -> ExecutionResult:
    updated = _commit(composition, elements, patch)
    logger.info(
        "%s -> version %d: %s", patch.operation, updated.version, patch.receipt,
    )
    return ExecutionResult(
        status=Status.SUCCESS,
        composition=updated,
        patch=patch,
        receipt=patch.receipt,
    )


# ── Operations ────────────────────────────────────────────────────


def _build_element(changes: PlanChanges, default_duration: int, taken: set,
                   element_id: str | None = None):
    """Construct a validated element (and its children) from add changes."""
    etype = changes.type
    prefix = f"New {etype} element"
    from_ = changes.from_ if changes.from_ is not None else 0
    duration = (
        changes.duration_in_frames
        if changes.duration_in_frames is not None
        else default_duration
    )
    check_timing(from_, duration, prefix)

    props = {k: v for k, v in (changes.properties or {}).items() if v is not None}
    check_properties(props, prefix)
    properties = build_properties(etype, props, prefix)

    animations = changes.animations or []
    check_animations(animations, prefix)

    new_id = element_id or generate_id("el", taken)
    taken.add(new_id)

    data = {
        "id": new_id,
        "type": etype,
        "label": changes.label,
        "from": from_,
        "durationInFrames": duration,
        "properties": properties.to_wire(),
        "animations": [a.to_wire() for a in animations],
    }

    if etype in GROUP_TYPES:
        children = []
        for j, raw in enumerate(changes.children or []):
            try:
                child = PlanChanges.model_validate(raw)
            except ValidationError as exc:
                raise MalformedPlanError(
                    f"{prefix}, child {j}: {summarize_validation_error(exc)}"
                ) from None
            if child.type is None:
                raise MalformedPlanError(f"{prefix}, child {j}: missing 'type'")
            if child.children is not None and child.type not in GROUP_TYPES:
                raise MalformedPlanError(
                    f"{prefix}, child {j}: only grouping elements can have children"
                )
            children.append(_build_element(child, default_duration, taken).to_wire())
        data["children"] = children

    try:
        return parse_element({k: v for k, v in data.items() if v is not None})
    except ValidationError as exc:
        raise MalformedPlanError(f"{prefix}: {summarize_validation_error(exc)}") from None


def _execute_add(plan: EditPlan, composition: Composition, default_duration: int,
                 element_id: str | None = None) -> ExecutionResult:
    taken = {el.id for el in walk(composition.elements)}
    element = _build_element(plan.changes, default_duration, taken, element_id=element_id)
    return _commit_add(composition, element, plan.changes.to_wire())


def _commit_add(composition: Composition, element, changes: dict) -> ExecutionResult:
    if element.label:
        receipt = f'Added {element.type} element "{element.label}"'
    else:
        receipt = f"Added {element.type} element"

    patch = _new_patch(
        composition, "add",
        selector=None,
        changes=changes,
        created=element.to_wire(),
        target_id=element.id,
        receipt=receipt,
    )
    return _success(composition, [*composition.elements, element], patch)


def _changed_fields(changes: PlanChanges) -> list[str]:
    names = []
    if changes.label is not None:
        names.append("label")
    if changes.from_ is not None:
        names.append("from")
    if changes.duration_in_frames is not None:
        names.append("durationInFrames")
    names.extend(changes.properties or {})
    if changes.animations is not None:
        names.append("animations")
    return names


def _execute_update(plan: EditPlan, composition: Composition, target) -> ExecutionResult:
    """update and move: overwrite explicit scalars, shallow-merge properties."""
    changes = plan.changes
    prefix = f"Element {target.id}"

    new_from = changes.from_ if changes.from_ is not None else target.from_
    new_duration = (
        changes.duration_in_frames
        if changes.duration_in_frames is not None
        else target.duration_in_frames
    )
    check_timing(new_from, new_duration, prefix)

    update = {"from_": new_from, "duration_in_frames": new_duration}

    if changes.properties is not None:
        check_properties(changes.properties, prefix)
        merged = {**target.properties.to_wire(), **changes.properties}
        merged = {k: v for k, v in merged.items() if v is not None}
        update["properties"] = build_properties(target.type, merged, prefix)

    if changes.animations is not None:
        check_animations(changes.animations, prefix)
        update["animations"] = list(changes.animations)

    if changes.label is not None:
        update["label"] = changes.label

    updated = target.model_copy(update=update)
    elements = replace_element(composition.elements, target.id, updated)

    name = target.display_name
    if plan.operation == "move":
        parts = []
        if changes.from_ is not None:
            parts.append(f"to {frames_to_timecode(new_from, composition.metadata.fps)}")
        if changes.duration_in_frames is not None:
            parts.append(f"for {format_duration(new_duration, composition.metadata.fps)}")
        receipt = f"Moved {name} {' '.join(parts)}"
    else:
        receipt = f"Updated {name} ({', '.join(_changed_fields(changes))})"

    patch = _new_patch(
        composition, plan.operation,
        selector=plan.selector,
        changes=changes.to_wire(),
        previous_state=target.to_wire(),
        target_id=target.id,
        receipt=receipt,
    )
    return _success(composition, elements, patch)


def _execute_delete(plan: EditPlan, composition: Composition, target) -> ExecutionResult:
    elements, removed, parent_id, index = remove_element(composition.elements, target.id)
    receipt = f"Deleted {removed.display_name}"
    if removed.child_elements:
        receipt += f" and {len(list(walk(removed.child_elements)))} nested element(s)"

    patch = _new_patch(
        composition, "delete",
        selector=plan.selector,
        changes=plan.changes.to_wire(),
        previous_state=removed.to_wire(),
        target_id=removed.id,
        parent_id=parent_id,
        index=index,
        receipt=receipt,
    )
    return _success(composition, elements, patch)


def _execute_reorder(composition: Composition, element_ids: list) -> ExecutionResult:
    current = [el.id for el in composition.elements]

    seen, dupes = set(), []
    for eid in element_ids:
        if eid in seen and eid not in dupes:
            dupes.append(eid)
        seen.add(eid)
    if dupes:
        raise InvalidRangeError(f"Reorder: duplicate ids {dupes}")

    missing = [eid for eid in current if eid not in seen]
    unknown = [eid for eid in element_ids if eid not in set(current)]
    if missing or unknown:
        msg = (
            f"Reorder must include exactly the {len(current)} top-level elements, "
            f"got {len(element_ids)}"
        )
        if missing:
            msg += f"; missing {missing}"
        if unknown:
            msg += f"; unknown {unknown}"
        raise InvalidRangeError(msg)

    by_id = {el.id: el for el in composition.elements}
    patch = _new_patch(
        composition, "reorder",
        changes={"order": list(element_ids)},
        previous_state={"order": current},
        receipt=f"Reordered {len(element_ids)} elements",
    )
    return _success(composition, [by_id[eid] for eid in element_ids], patch)
