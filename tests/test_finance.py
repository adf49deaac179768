import csv
import io

import pytest


@pytest.fixture
def ledger(client, auth_headers, assignment_payload):
    client.post("/api/personal-training-assignments", json=assignment_payload, headers=auth_headers)
    client.post(
        "/api/customers",
        json={
            "name": "Rahul Mehta",
            "membership_type": "basic",
            "membership_fees": 1200,
            "membership_duration": 1,
            "transaction_date": "2024-03-05",
        },
        headers=auth_headers,
    )


@pytest.mark.finance
class TestFinanceSummary:
    def test_empty_gym(self, client, auth_headers):
        response = client.get("/api/finance/summary", headers=auth_headers)

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["total_revenue"] == 0.0
        assert data["transaction_count"] == 0
        assert data["revenue_by_type"] == {}

    def test_summary_totals(self, client, auth_headers, ledger):
        response = client.get("/api/finance/summary", headers=auth_headers)

        data = response.get_json()["data"]
        assert data["total_revenue"] == 5700.0
        assert data["transaction_count"] == 2
        assert data["total_customers"] == 2
        assert data["revenue_by_type"] == {
            "MEMBERSHIP_JOINING": 1200.0,
            "PERSONAL_TRAINING": 4500.0,
        }
        assert {"month": "2024-03", "revenue": 1200.0} in data["revenue_by_month"]


@pytest.mark.finance
class TestLedgerExport:
    def test_csv_export(self, client, auth_headers, ledger):
        response = client.get("/api/finance/transactions/export", headers=auth_headers)

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]

        rows = list(csv.DictReader(io.StringIO(response.data.decode("utf-8"))))
        assert len(rows) == 2
        assert {r["Customer"] for r in rows} == {"Asha Rao", "Rahul Mehta"}
        assert {r["Invoice"] for r in rows} == {"INV00001", "INV00002"}
