r"""backend/app/api/v1/suggestions.py

Routes backing the order-suggestion panel."""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter, HTTPException, status

from ...core.observability import APPROVALS_DISPATCHED
from ...models import schemas
from ...services.audit_service import APPROVE, QUANTITY_CHANGE
from ...services.selection_service import (
    SelectionState,
    bulk_approve,
    change_quantity,
    index_suggestions,
)
from ...services.summary_service import summarize_suggestions
from .approvals import audit_log
from .forecasts import _error_payload

LOGGER = logging.getLogger(__name__)

router = APIRouter()

BULK_APPROVAL_REASON = "bulk approval"


@router.post("/suggestions/summary", response_model=schemas.SuggestionSummary)
def get_summary(body: schemas.OrderSuggestions) -> schemas.SuggestionSummary:
    """Headline metrics plus the suggestions ranked by urgency."""

    return summarize_suggestions(body)


@router.post("/suggestions/bulk-approve", response_model=schemas.BulkApproveResponse)
def approve_selected(body: schemas.BulkApproveRequest) -> schemas.BulkApproveResponse:
    """Approve the selected suggestions in selection order.

    Ids without a matching suggestion are reported under ``skipped``.
    """

    state = SelectionState(tuple(dict.fromkeys(body.selected_ids)))
    log = audit_log()

    def _record(suggestion: schemas.OrderSuggestion) -> None:
        log.record(
            suggestion.book_id,
            APPROVE,
            qty=suggestion.suggested_quantity,
            reason=BULK_APPROVAL_REASON,
            book_title=suggestion.book_title,
        )

    LOGGER.info("Bulk approval requested for %d suggestions", len(state))
    try:
        result = bulk_approve(state, index_suggestions(body.suggestions), _record)
    except OSError as exc:
        LOGGER.exception("Bulk approval stopped while writing the audit log")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_error_payload("write_failed", str(exc)),
        ) from exc

    APPROVALS_DISPATCHED.labels("bulk").inc(len(result.approved))
    if result.skipped:
        LOGGER.info("Skipped %d selected ids with no matching suggestion", len(result.skipped))
    return schemas.BulkApproveResponse(
        approved=result.approved,
        skipped=result.skipped,
        selected_ids=list(result.state.selected),
    )


@router.post("/suggestions/{book_id}/quantity")
def set_quantity(book_id: str, body: schemas.QuantityChange) -> Dict[str, object]:
    """Record a stepper change for one suggestion."""

    def _record(suggestion_id: str, quantity: int) -> None:
        audit_log().record(suggestion_id, QUANTITY_CHANGE, qty=quantity)

    try:
        quantity = change_quantity(book_id, body.quantity, _record)
    except OSError as exc:
        LOGGER.exception("Failed to record quantity change for book_id=%s", book_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_error_payload("write_failed", str(exc)),
        ) from exc
    return {"bookId": book_id, "quantity": quantity}


@router.get("/suggestions/quantities")
def get_quantities() -> Dict[str, Dict[str, int]]:
    """Latest quantity recorded per book id."""

    return {"quantities": audit_log().latest_quantities()}
