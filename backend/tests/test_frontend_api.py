from __future__ import annotations

import importlib.util
import json
from pathlib import Path
import sys

import requests
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from backend.app.main import app  # noqa: E402


client = TestClient(app)

_spec = importlib.util.spec_from_file_location("dashboard_api_helpers", ROOT / "frontend" / "utils" / "api.py")
dashboard_api = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(dashboard_api)


def _http_error(status_code: int, body: dict) -> requests.HTTPError:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode("utf-8")
    return requests.HTTPError(response=response)


def test_negative_approval_quantity_is_rejected_with_readable_message(monkeypatch, tmp_path: Path) -> None:
    log_path = tmp_path / "audit_log.jsonl"
    monkeypatch.setattr("backend.app.api.v1.approvals.LOG_PATH", str(log_path))

    response = client.post("/api/v1/approvals", json={"bookId": "A", "action": "approve", "qty": -1})
    assert response.status_code == 422
    assert not log_path.exists()

    message = dashboard_api.error_detail(_http_error(422, response.json()))
    assert message.startswith("qty: ")
    assert "greater than or equal to 0" in message


def test_error_detail_reads_domain_payload() -> None:
    error = _http_error(400, {"detail": {"error": "invalid_limit", "message": "limit must be non-negative."}})

    assert dashboard_api.error_detail(error) == "limit must be non-negative."


def test_format_validation_error_without_location() -> None:
    assert dashboard_api.format_validation_error({"msg": "Field required"}) == "Field required"
    assert dashboard_api.format_validation_error("odd") == "odd"
