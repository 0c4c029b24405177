from __future__ import annotations

from pathlib import Path
import sys

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from backend.app.main import app  # noqa: E402


client = TestClient(app)


PREDICTION_PAYLOAD = {
    "algorithm": "ensemble",
    "timeHorizon": "30_days",
    "accuracy": 84.0,
    "demandPredictions": [
        {
            "bookTitle": "Dune",
            "forecastDate": "2024-01-02",
            "predictedDemand": 12,
            "currentStock": 4,
            "demandTrend": "increasing",
            "confidenceLevel": 82,
        },
        {
            "bookTitle": "Emma",
            "forecastDate": "2024-01-01",
            "predictedDemand": 3,
            "currentStock": 20,
            "confidenceLevel": 55,
        },
    ],
    "salesPredictions": [
        {
            "categoryName": "Fiction",
            "forecastPeriodStart": "2024-01-01",
            "predictedRevenue": 310.0,
            "predictedOrderCount": 9,
        },
        {"forecastPeriodStart": "someday", "predictedRevenue": 5.0},
    ],
    "seasonalFactors": [{"season": "winter", "seasonalMultiplier": 1.2}],
    "confidence": {
        "overallConfidence": 72,
        "dataQuality": "good",
        "uncertaintyFactors": ["new releases"],
        "recommendation": "Reorder bestsellers early",
    },
}


def test_timeline_reconciles_and_classifies(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("backend.app.api.v1.forecasts.CONFIG_DIR", str(tmp_path))

    response = client.post("/api/v1/forecasts/timeline", json=PREDICTION_PAYLOAD)
    assert response.status_code == 200
    body = response.json()

    assert [p["date"] for p in body["points"]] == ["2024-01-01", "2024-01-02", "someday"]
    first = body["points"][0]
    assert first["source"] == "merged"
    assert first["predictedDemand"] == 3
    assert first["predictedRevenue"] == 310.0
    assert first["categoryName"] == "Fiction"

    assert body["issues"] == [
        {
            "code": "invalid_date",
            "date": "someday",
            "source": "sales",
            "message": body["issues"][0]["message"],
        }
    ]
    assert body["confidenceClass"] == "MEDIUM"
    assert body["confidencePresentation"]["color"] == "#ff9800"
    assert body["accuracySeverity"] == "success"
    assert body["reorderPoint"] == 10.0
    assert [k["confidenceClass"] for k in body["keyPredictions"]] == ["HIGH", "LOW"]


def test_timeline_uses_configured_reorder_point(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("backend.app.api.v1.forecasts.CONFIG_DIR", str(tmp_path))
    (tmp_path / "thresholds.yaml").write_text("reorder_point: 25\n")

    response = client.post("/api/v1/forecasts/timeline", json={})
    assert response.status_code == 200
    body = response.json()
    assert body["points"] == []
    assert body["confidenceClass"] == "UNKNOWN"
    assert body["reorderPoint"] == 25.0


def test_profitability_bands(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("backend.app.api.v1.profitability.CONFIG_DIR", str(tmp_path))

    response = client.post(
        "/api/v1/profitability/bands",
        json=[
            {"itemName": "Fiction", "profitMargin": 10},
            {"itemName": "Poetry", "profitMargin": 50},
            {"itemName": "Travel", "profitMargin": 30},
        ],
    )
    assert response.status_code == 200
    body = response.json()
    assert [cell["band"] for cell in body["items"]] == ["VERY_POOR", "EXCELLENT", "AVERAGE"]
    assert body["degenerate"] is False
    assert len(body["legend"]) == 5


def test_profitability_degenerate_range(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("backend.app.api.v1.profitability.CONFIG_DIR", str(tmp_path))

    response = client.post(
        "/api/v1/profitability/bands",
        json=[{"itemName": "A", "profitMargin": 10}, {"itemName": "B", "profitMargin": 10}],
    )
    body = response.json()
    assert body["degenerate"] is True
    assert [cell["normalized"] for cell in body["items"]] == [1.0, 1.0]
    assert {cell["band"] for cell in body["items"]} == {"EXCELLENT"}


def test_profitability_empty_list(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("backend.app.api.v1.profitability.CONFIG_DIR", str(tmp_path))

    response = client.post("/api/v1/profitability/bands", json=[])
    assert response.status_code == 200
    assert response.json()["items"] == []
