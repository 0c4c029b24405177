r"""backend\app\api\v1\approvals.py

Endpoints for recording order decisions and reading the audit log."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Literal

from fastapi import APIRouter, HTTPException, status
from pydantic import Field, field_validator

from ...core.config import get_settings
from ...models.schemas import CamelModel, SuggestionId
from ...services.audit_service import AuditLogService
from .forecasts import _error_payload

LOGGER = logging.getLogger(__name__)

router = APIRouter()

DATA_DIR = get_settings().data_dir
LOG_PATH = os.path.join(DATA_DIR, "approvals_audit_log.jsonl")


def audit_log() -> AuditLogService:
    """Return the audit log service for the currently configured path."""

    return AuditLogService(LOG_PATH)


class ApprovalRequest(CamelModel):
    book_id: SuggestionId
    action: Literal["approve", "reject"]
    qty: int | None = Field(None, ge=0)
    reason: str | None = Field(None, min_length=1)

    @field_validator("action", mode="before")
    @classmethod
    def _normalise_action(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


@router.post("/approvals")
def create_approval(request: ApprovalRequest) -> Dict[str, Any]:
    """Record an approval decision and append it to the audit log."""

    try:
        event = audit_log().record(
            request.book_id,
            request.action,
            qty=request.qty,
            reason=request.reason,
        )
    except OSError as exc:
        LOGGER.exception("Failed to write approval for book_id=%s", request.book_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_error_payload("write_failed", str(exc)),
        ) from exc
    return {"status": "ok", "event": event}


@router.get("/approvals/audit-log")
def get_audit_log(limit: int = 50) -> Dict[str, List[Dict[str, Any]]]:
    """Return the most recent approval audit log entries."""

    if limit < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_error_payload("invalid_limit", "limit must be non-negative."),
        )
    return {"events": audit_log().read(limit)}
