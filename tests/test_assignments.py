import datetime
import json

import pytest
from decimal import Decimal

from app.models import Customer, PersonalTrainingAssignment


@pytest.mark.assignments
class TestAssignmentEndpoints:
    """Test suite for /api/personal-training-assignments."""

    def test_requires_token(self, client):
        response = client.get("/api/personal-training-assignments")

        assert response.status_code == 401
        assert response.get_json()["success"] is False

    def test_rejects_bad_token(self, client):
        response = client.get(
            "/api/personal-training-assignments",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    def test_create_success(self, client, auth_headers, assignment_payload, sample_customer, db):
        response = client.post(
            "/api/personal-training-assignments",
            data=json.dumps(assignment_payload),
            content_type="application/json",
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["success"] is True
        assert data["data"]["assignment"]["end_date"] == "2024-04-14"
        assert data["data"]["assignment"]["trainer"]["name"] == "Vikram Singh"
        assert data["data"]["invoice"]["invoice_number"] == "INV00001"
        assert data["data"]["invoice"]["amount"] == 4500.0
        assert data["data"]["transaction"]["transaction_type"] == "PERSONAL_TRAINING"

        customer = db.session.get(Customer, sample_customer.id)
        assert customer.total_spent == Decimal("4500.00")

    def test_create_defaults_gym_to_caller(self, client, auth_headers, assignment_payload):
        assignment_payload.pop("gym_id")

        response = client.post(
            "/api/personal-training-assignments",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 201

    @pytest.mark.parametrize("field", ["customer_id", "trainer_id", "start_date", "duration", "fees"])
    def test_create_missing_field(self, client, auth_headers, assignment_payload, field):
        assignment_payload.pop(field)

        response = client.post(
            "/api/personal-training-assignments",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "All fields are required."

    def test_create_invalid_duration(self, client, auth_headers, assignment_payload):
        assignment_payload["duration"] = "three"

        response = client.post(
            "/api/personal-training-assignments",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_create_for_other_gym(self, client, auth_headers, assignment_payload, other_gym):
        assignment_payload["gym_id"] = other_gym.id

        response = client.post(
            "/api/personal-training-assignments",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 404

    def test_create_unknown_customer(self, client, auth_headers, assignment_payload):
        assignment_payload["customer_id"] = 9999

        response = client.post(
            "/api/personal-training-assignments",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 404

    def test_list_and_get(self, client, auth_headers, assignment_payload):
        created = client.post(
            "/api/personal-training-assignments", json=assignment_payload, headers=auth_headers
        ).get_json()["data"]["assignment"]

        listing = client.get("/api/personal-training-assignments", headers=auth_headers)
        assert listing.status_code == 200
        assert [a["id"] for a in listing.get_json()["data"]] == [created["id"]]

        single = client.get(
            f"/api/personal-training-assignments/{created['id']}", headers=auth_headers
        )
        assert single.status_code == 200
        assert single.get_json()["data"]["customer"]["name"] == "Asha Rao"

    def test_get_nonexistent(self, client, auth_headers):
        response = client.get("/api/personal-training-assignments/99999", headers=auth_headers)

        assert response.status_code == 404

    def test_update(self, client, auth_headers, assignment_payload):
        created = client.post(
            "/api/personal-training-assignments", json=assignment_payload, headers=auth_headers
        ).get_json()["data"]

        assignment_payload.update({"duration": 1, "fees": 2000})
        response = client.put(
            f"/api/personal-training-assignments/{created['assignment']['id']}",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.get_json()["data"]["end_date"] == "2024-02-14"

        invoices = client.get("/api/invoices", headers=auth_headers).get_json()["data"]
        assert len(invoices) == 1
        assert invoices[0]["amount"] == 2000.0
        assert invoices[0]["invoice_number"] == created["invoice"]["invoice_number"]

    def test_update_nonexistent(self, client, auth_headers, assignment_payload):
        response = client.put(
            "/api/personal-training-assignments/4242",
            json=assignment_payload,
            headers=auth_headers,
        )

        assert response.status_code == 404

    def test_renew(self, client, auth_headers, assignment_payload, sample_customer, db):
        created = client.post(
            "/api/personal-training-assignments", json=assignment_payload, headers=auth_headers
        ).get_json()["data"]

        response = client.post(
            f"/api/personal-training-assignments/{created['assignment']['id']}/renew",
            json={
                "start_date": "2024-04-15",
                "duration": 3,
                "end_date": "2024-07-14",
                "fees": 4200,
                "payment_mode": "Debit Card",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["assignment"]["end_date"] == "2024-07-14"
        assert data["invoice"]["invoice_number"] == "INV00002"
        assert data["transaction"]["transaction_type"] == "PERSONAL_TRAINING_RENEWAL"
        assert data["transaction"]["payment_mode"] == "debit_card"

        customer = db.session.get(Customer, sample_customer.id)
        assert customer.total_spent == Decimal("8700.00")

    def test_renew_missing_end_date(self, client, auth_headers, assignment_payload):
        created = client.post(
            "/api/personal-training-assignments", json=assignment_payload, headers=auth_headers
        ).get_json()["data"]

        response = client.post(
            f"/api/personal-training-assignments/{created['assignment']['id']}/renew",
            json={"start_date": "2024-04-15", "duration": 3, "fees": 4200},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_delete(self, client, auth_headers, assignment_payload, sample_customer, db):
        created = client.post(
            "/api/personal-training-assignments", json=assignment_payload, headers=auth_headers
        ).get_json()["data"]

        response = client.delete(
            f"/api/personal-training-assignments/{created['assignment']['id']}",
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.get_json()["success"] is True
        assert client.get("/api/invoices", headers=auth_headers).get_json()["data"] == []
        assert client.get("/api/transactions", headers=auth_headers).get_json()["data"] == []

        customer = client.get(f"/api/customers/{sample_customer.id}", headers=auth_headers)
        assert customer.get_json()["data"]["personal_trainer"] is None

    def test_delete_nonexistent(self, client, auth_headers):
        response = client.delete("/api/personal-training-assignments/31337", headers=auth_headers)

        assert response.status_code == 404

    def test_expiring(self, client, auth_headers, sample_customer, sample_trainer, sample_gym, db):
        today = datetime.date.today()
        for offset in (0, 3, 8):
            db.session.add(
                PersonalTrainingAssignment(
                    customer_id=sample_customer.id,
                    trainer_id=sample_trainer.id,
                    gym_id=sample_gym.id,
                    start_date=today - datetime.timedelta(days=30),
                    duration=1,
                    end_date=today + datetime.timedelta(days=offset),
                    fees=Decimal("1000"),
                )
            )
        db.session.commit()

        response = client.get("/api/personal-training-assignments/expiring", headers=auth_headers)

        assert response.status_code == 200
        end_dates = [a["end_date"] for a in response.get_json()["data"]]
        assert end_dates == [
            today.isoformat(),
            (today + datetime.timedelta(days=3)).isoformat(),
        ]
