"""Undo and redo over the composition patch log.

Every successful edit appends a Patch carrying enough of the prior state
to invert it. undo() pops the newest patch and restores that state;
EditSession keeps the popped patches on a redo stack and replays them by
element id on request. A new edit clears the redo stack.
"""

import logging
from dataclasses import replace

from .errors import EditError, ElementNotFoundError, HistoryError, MalformedPlanError
from .executor import (
    DEFAULT_DURATION_IN_FRAMES,
    ExecutionResult,
    Status,
    apply,
    insert_element,
    rejected,
    remove_element,
    reorder,
    replace_element,
    replay,
)
from .model import Composition, Patch, parse_element
from .selectors import find_by_id

logger = logging.getLogger(__name__)


def undo(composition: Composition) -> ExecutionResult:
    """Revert the most recent patch.

    The result composition has the patch removed from its log and its
    version bumped. An empty log is an EmptyHistory error.
    """
    try:
        if not composition.patches:
            raise HistoryError("Nothing to undo")
        patch = composition.patches[-1]
        elements = _invert(patch, composition)
    except EditError as exc:
        return rejected(exc)

    updated = composition.model_copy(update={
        "elements": elements,
        "version": composition.version + 1,
        "patches": composition.patches[:-1],
    })
    receipt = f"Undid: {patch.receipt or patch.operation}"
    logger.info("undo -> version %d: %s", updated.version, receipt)
    return ExecutionResult(
        status=Status.SUCCESS,
        composition=updated,
        patch=patch,
        receipt=receipt,
    )


def _invert(patch: Patch, composition: Composition) -> list:
    elements = composition.elements

    if patch.operation == "add":
        remaining, removed, _, _ = remove_element(elements, patch.target_id)
        if removed is None:
            raise ElementNotFoundError(
                f"Cannot undo add: element {patch.target_id} no longer exists"
            )
        return remaining

    if patch.operation in ("update", "move"):
        if find_by_id(elements, patch.target_id) is None:
            raise ElementNotFoundError(
                f"Cannot undo {patch.operation}: element {patch.target_id} no longer exists"
            )
        return replace_element(elements, patch.target_id, parse_element(patch.previous_state))

    if patch.operation == "delete":
        if find_by_id(elements, patch.target_id) is not None:
            raise MalformedPlanError(
                f"Cannot undo delete: element {patch.target_id} already exists"
            )
        restored = parse_element(patch.previous_state)
        return insert_element(elements, restored, patch.parent_id, patch.index)

    if patch.operation == "reorder":
        order = patch.previous_state["order"]
        by_id = {el.id: el for el in elements}
        if set(order) != set(by_id) or len(order) != len(by_id):
            raise MalformedPlanError("Cannot undo reorder: top-level elements changed since")
        return [by_id[eid] for eid in order]

    raise MalformedPlanError(f"Cannot undo unknown operation '{patch.operation}'")


class EditSession:
    """A composition plus its redo stack.

    The composition's patch log is the undo stack, so it survives a
    save/load round trip. The redo stack lives only as long as the
    session.
    """

    def __init__(self, composition: Composition,
                 default_duration: int = DEFAULT_DURATION_IN_FRAMES):
        self.composition = composition
        self.default_duration = default_duration
        self._redo: list[Patch] = []

    @property
    def can_undo(self) -> bool:
        return bool(self.composition.patches)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def apply(self, plan, resolved_id: str | None = None) -> ExecutionResult:
        result = apply(plan, self.composition, resolved_id=resolved_id,
                       default_duration=self.default_duration)
        return self._accept(result)

    def reorder(self, element_ids) -> ExecutionResult:
        return self._accept(reorder(self.composition, element_ids))

    def undo(self) -> ExecutionResult:
        result = undo(self.composition)
        if result.ok:
            self.composition = result.composition
            self._redo.append(result.patch)
        return result

    def redo(self) -> ExecutionResult:
        if not self._redo:
            return rejected(HistoryError("Nothing to redo"))
        patch = self._redo.pop()
        result = replay(patch, self.composition, self.default_duration)
        if not result.ok:
            self._redo.append(patch)
            return result
        self.composition = result.composition
        return replace(result, receipt=f"Redid: {result.receipt}")

    def _accept(self, result: ExecutionResult) -> ExecutionResult:
        if result.ok:
            self.composition = result.composition
            self._redo.clear()
        return result
