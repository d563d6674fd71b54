"""API tests for the sampling and control workflow endpoints.

Requests are served from the in-memory repository.
"""

import csv
import io

from fastapi.testclient import TestClient

BASE = "/api/v1"


def register(client: TestClient, control_id="CTRL-001", frequency="Quarterly", risk="H"):
    response = client.put(
        f"{BASE}/controls/{control_id}",
        json={"name": "Access review", "frequency_label": frequency, "risk_rating": risk},
    )
    assert response.status_code == 200
    return response.json()


def configure(client: TestClient, control_id="CTRL-001", **overrides):
    payload = {"audit_start": "2025-01-01", "audit_end": "2025-12-31", "seed": 42}
    payload.update(overrides)
    return client.post(f"{BASE}/controls/{control_id}/sampling/configure", json=payload)


def test_health(client: TestClient):
    response = client.get(f"{BASE}/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_classify_preview(client: TestClient):
    response = client.post(
        f"{BASE}/sampling/classify",
        json={"frequency_label": "Quarterly", "risk_rating": "H"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["sample_count"] == 5
    assert data["methodology"] == "judgmental"
    assert data["requires_sampling"] is True


def test_classify_rejects_inverted_window(client: TestClient):
    response = client.post(
        f"{BASE}/sampling/classify",
        json={"frequency_label": "Monthly", "audit_start": "2025-12-31", "audit_end": "2025-01-01"},
    )

    assert response.status_code == 400


def test_partition_preview(client: TestClient):
    response = client.post(
        f"{BASE}/sampling/partition",
        json={
            "frequency_label": "Quarterly",
            "risk_rating": "H",
            "audit_start": "2025-01-01",
            "audit_end": "2025-12-31",
        },
    )

    assert response.status_code == 200
    periods = response.json()["periods"]
    assert [p["id"] for p in periods] == ["2025-Q1", "2025-Q2", "2025-Q3", "2025-Q4"]
    assert [p["samples_required"] for p in periods] == [1, 1, 1, 2]


def test_partition_preview_monthly(client: TestClient):
    response = client.post(
        f"{BASE}/sampling/partition",
        json={
            "frequency_label": "Daily",
            "risk_rating": "M",
            "audit_start": "2025-01-01",
            "audit_end": "2025-03-31",
            "period_type": "rolling_months",
        },
    )

    assert response.status_code == 200
    assert [p["id"] for p in response.json()["periods"]] == ["2025-01", "2025-02", "2025-03"]


def test_register_control(client: TestClient):
    data = register(client)

    assert data["descriptor"]["control_id"] == "CTRL-001"
    assert data["classification"]["sample_count"] == 5


def test_unknown_control_returns_404(client: TestClient):
    response = client.get(f"{BASE}/controls/missing/sampling")

    assert response.status_code == 404


def test_continuous_control_cannot_be_configured(client: TestClient):
    register(client, frequency="Continuous")

    response = configure(client)

    assert response.status_code == 409
    status_response = client.get(f"{BASE}/controls/CTRL-001/sampling")
    assert status_response.json()["status"] == "No Sampling Required"


def test_approve_before_generate_returns_409(client: TestClient):
    register(client)
    configure(client)

    response = client.post(f"{BASE}/controls/CTRL-001/sampling/approve", json={})

    assert response.status_code == 409


def test_request_without_approval_returns_400(client: TestClient):
    register(client)
    configure(client)
    client.post(f"{BASE}/controls/CTRL-001/sampling/generate", json={})

    response = client.post(f"{BASE}/controls/CTRL-001/evidence-requests", json={})

    assert response.status_code == 400


def test_generate_without_configuration_returns_404(client: TestClient):
    register(client)

    response = client.post(f"{BASE}/controls/CTRL-001/sampling/generate", json={})

    assert response.status_code == 404


def test_full_workflow(client: TestClient):
    """Test: A control moves from registration to completed evidence."""
    register(client)

    response = configure(client)
    assert response.status_code == 201
    config = response.json()
    assert config["status"] == "draft"
    assert [p["samples_required"] for p in config["periods"]] == [1, 1, 1, 2]

    status_response = client.get(f"{BASE}/controls/CTRL-001/sampling")
    assert status_response.json()["status"] == "Sampling Configured"

    response = client.post(f"{BASE}/controls/CTRL-001/sampling/generate", json={})
    assert response.status_code == 200
    generated = response.json()
    assert len(generated["samples"]) == 5
    assert generated["warnings"] == []

    response = client.post(
        f"{BASE}/controls/CTRL-001/sampling/approve", json={"approved_by": "manager"}
    )
    assert response.status_code == 200
    assert response.json()["approved_by"] == "manager"
    assert client.get(f"{BASE}/controls/CTRL-001/sampling").json()["status"] == (
        "Ready for Evidence Request"
    )

    response = client.post(f"{BASE}/controls/CTRL-001/evidence-requests", json={})
    assert response.status_code == 201
    request = response.json()
    assert len(request["sample_dates"]) == 5
    assert request["priority"] == "high"

    summary = client.get(f"{BASE}/controls/CTRL-001/sampling").json()
    assert summary["status"] == "Evidence Request Sent"
    assert summary["evidence_progress"] == "pending"
    assert summary["configuration"]["status"] == "sent"

    response = client.post(f"{BASE}/controls/CTRL-001/evidence-requests", json={})
    assert response.status_code == 409

    for sample_date in request["sample_dates"]:
        response = client.post(
            f"{BASE}/controls/CTRL-001/evidence-requests/{request['id']}/submissions",
            json={"sample_date": sample_date, "file_name": f"{sample_date}.pdf"},
        )
        assert response.status_code == 201
        submission = response.json()
        assert submission["status"] == "uploaded"

        response = client.post(
            f"{BASE}/controls/CTRL-001/submissions/{submission['id']}/review",
            json={"status": "approved", "reviewed_by": "manager"},
        )
        assert response.status_code == 200

    summary = client.get(f"{BASE}/controls/CTRL-001/sampling").json()
    assert summary["evidence_progress"] == "complete"
    assert summary["configuration"]["status"] == "completed"
    assert summary["requests"][0]["status"] == "approved"


def test_reconfigure_replaces_configuration(client: TestClient):
    register(client)
    first = configure(client).json()

    response = client.post(
        f"{BASE}/controls/CTRL-001/sampling/reconfigure",
        json={"audit_start": "2025-01-01", "audit_end": "2025-06-30", "seed": 1},
    )

    assert response.status_code == 201
    second = response.json()
    assert second["id"] != first["id"]
    assert second["sample_count"] == 3
    summary = client.get(f"{BASE}/controls/CTRL-001/sampling").json()
    assert summary["configuration"]["id"] == second["id"]


def test_review_unknown_submission_returns_404(client: TestClient):
    register(client)

    response = client.post(
        f"{BASE}/controls/CTRL-001/submissions/00000000-0000-0000-0000-000000000000/review",
        json={"status": "approved"},
    )

    assert response.status_code == 404


def test_export_csv(client: TestClient):
    register(client, frequency="Monthly", risk="M")
    configure(client)
    client.post(f"{BASE}/controls/CTRL-001/sampling/generate", json={})

    response = client.get(f"{BASE}/controls/CTRL-001/sampling/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Period", "Sample #", "Date", "Weekend", "Holiday", "Status"]
    assert len(rows) == 7
    assert [row[1] for row in rows[1:]] == ["1", "2", "3", "4", "5", "6"]


def test_configure_rejects_bad_fiscal_month(client: TestClient):
    register(client)

    response = configure(client, period_type="fiscal_quarters", fiscal_year_start_month=13)

    assert response.status_code == 422


def test_partition_preview_warns_on_unknown_frequency(client: TestClient):
    response = client.post(
        f"{BASE}/sampling/partition",
        json={
            "frequency_label": "every blue moon",
            "audit_start": "2025-01-01",
            "audit_end": "2025-12-31",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["classification"]["sample_count"] == 2
    assert [w["code"] for w in data["warnings"]] == ["unknown_frequency"]
