r"""backend\app\services\audit_service.py

Append-only JSONL log of order decisions.

This is the collaborator that receives approve events from the suggestion
panel and quantity changes from its stepper.  The most recent quantity per
book is derived from the log on read.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

LOGGER = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"
QUANTITY_CHANGE = "quantity_change"


class AuditLogService:
    """Read and append decision events in a JSON-lines file."""

    _write_lock = threading.Lock()

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _ensure_storage(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def record(
        self,
        book_id: int | str,
        action: str,
        qty: Optional[int] = None,
        reason: Optional[str] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        """Append one event and return it as written."""

        event: Dict[str, Any] = {
            "book_id": book_id,
            "action": action,
            "recorded_at": datetime.now(timezone.utc).isoformat(),
        }
        if qty is not None:
            event["qty"] = int(qty)
        if reason is not None:
            event["reason"] = reason
        event.update({key: value for key, value in extra.items() if value is not None})

        self._ensure_storage()
        with self._write_lock, self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event, separators=(",", ":")) + "\n")
        LOGGER.info("Recorded %s event for book_id=%s qty=%s", action, book_id, qty)
        return event

    def read(self, limit: int = 0) -> List[Dict[str, Any]]:
        """Return the last ``limit`` events (all events when ``limit <= 0``)."""

        if not self.path.exists():
            return []

        events: List[Dict[str, Any]] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    LOGGER.warning("Skipping malformed audit log line in %s", self.path)
                    continue
        if limit <= 0:
            return events
        return events[-limit:]

    def latest_quantities(self) -> Dict[str, int]:
        """Most recent stepper quantity per book id (ids as strings)."""

        quantities: Dict[str, int] = {}
        for event in self.read():
            if event.get("action") == QUANTITY_CHANGE and "qty" in event:
                quantities[str(event.get("book_id"))] = int(event["qty"])
        return quantities
