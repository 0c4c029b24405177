r"""backend\app\services\selection_service.py

Selection and quantity handling for the order-suggestion panel.

The selection is an insertion-ordered set of suggestion ids held in an
immutable ``SelectionState``.  Transitions are plain functions returning a
new state, which keeps them testable without a UI; ``SelectionLedger`` wraps
one state per UI session and applies each transition to the latest state.

Quantities are never stored here.  The stepper computes the new value from
the quantity that was last rendered and forwards it to the caller's handler;
any floor or persistence is the handler's business.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple, TypeVar

LOGGER = logging.getLogger(__name__)

S = TypeVar("S")

ApproveHandler = Callable[[S], object]
QuantityHandler = Callable[[Hashable, int], object]


@dataclass(frozen=True)
class SelectionState:
    """Ids the user has checked, in the order they were checked."""

    selected: Tuple[Hashable, ...] = ()

    def __contains__(self, suggestion_id: object) -> bool:
        return suggestion_id in self.selected

    def __len__(self) -> int:
        return len(self.selected)

    @property
    def is_empty(self) -> bool:
        return not self.selected


@dataclass(frozen=True)
class BulkApproveResult:
    state: SelectionState
    approved: List[object] = field(default_factory=list)
    skipped: List[Hashable] = field(default_factory=list)


def toggle(state: SelectionState, suggestion_id: Hashable) -> SelectionState:
    """Add ``suggestion_id`` if absent, remove it if present."""

    if suggestion_id in state.selected:
        return SelectionState(tuple(sid for sid in state.selected if sid != suggestion_id))
    return SelectionState(state.selected + (suggestion_id,))


def clear(state: SelectionState) -> SelectionState:
    return SelectionState()


def index_suggestions(
    suggestions: Iterable[S],
    key: Callable[[S], Hashable] = lambda suggestion: getattr(suggestion, "book_id"),
) -> Dict[Hashable, S]:
    """Map suggestion ids to records; the first record wins for a repeated id."""

    indexed: Dict[Hashable, S] = {}
    for suggestion in suggestions:
        indexed.setdefault(key(suggestion), suggestion)
    return indexed


def bulk_approve(
    state: SelectionState,
    suggestions_by_id: Mapping[Hashable, S],
    on_approve: Optional[ApproveHandler] = None,
) -> BulkApproveResult:
    """Approve every selected suggestion, then clear the selection.

    Events are dispatched in selection order.  Ids that no longer have a
    record (the payload was refreshed after they were checked) are skipped.
    An exception from ``on_approve`` propagates unchanged; the caller still
    holds the previous state in that case.
    """

    approved: List[object] = []
    skipped: List[Hashable] = []
    for suggestion_id in state.selected:
        suggestion = suggestions_by_id.get(suggestion_id)
        if suggestion is None:
            LOGGER.debug("Selected suggestion %s is no longer in the payload; skipping", suggestion_id)
            skipped.append(suggestion_id)
            continue
        if on_approve is not None:
            on_approve(suggestion)
        approved.append(suggestion)

    return BulkApproveResult(state=clear(state), approved=approved, skipped=skipped)


def change_quantity(
    suggestion_id: Hashable,
    new_quantity: int,
    on_quantity_change: Optional[QuantityHandler] = None,
) -> int:
    """Report ``new_quantity`` for ``suggestion_id`` to the handler."""

    if on_quantity_change is not None:
        on_quantity_change(suggestion_id, new_quantity)
    return new_quantity


def step_quantity(
    suggestion_id: Hashable,
    displayed_quantity: int,
    delta: int,
    on_quantity_change: Optional[QuantityHandler] = None,
) -> int:
    """Apply a +/- stepper click to the quantity currently on screen.

    Rapid clicks only compose when the view re-renders between them, since
    each click starts from ``displayed_quantity``.
    """

    return change_quantity(suggestion_id, int(displayed_quantity or 0) + int(delta), on_quantity_change)


class SelectionLedger:
    """Selection state owned by a single UI session."""

    def __init__(self, state: Optional[SelectionState] = None) -> None:
        self._state = state or SelectionState()
        self._lock = threading.Lock()

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selected(self) -> Tuple[Hashable, ...]:
        return self._state.selected

    def toggle(self, suggestion_id: Hashable) -> SelectionState:
        with self._lock:
            self._state = toggle(self._state, suggestion_id)
            return self._state

    def clear(self) -> SelectionState:
        with self._lock:
            self._state = clear(self._state)
            return self._state

    def bulk_approve(
        self,
        suggestions_by_id: Mapping[Hashable, S],
        on_approve: Optional[ApproveHandler] = None,
    ) -> BulkApproveResult:
        with self._lock:
            result = bulk_approve(self._state, suggestions_by_id, on_approve)
            self._state = result.state
            return result
