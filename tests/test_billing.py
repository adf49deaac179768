import pytest

from app.models import Trainer


@pytest.fixture
def billed(client, auth_headers, assignment_payload):
    """One personal training assignment plus its renewal."""
    created = client.post(
        "/api/personal-training-assignments", json=assignment_payload, headers=auth_headers
    ).get_json()["data"]
    client.post(
        f"/api/personal-training-assignments/{created['assignment']['id']}/renew",
        json={"start_date": "2024-04-15", "duration": 2, "end_date": "2024-06-14", "fees": 3000},
        headers=auth_headers,
    )
    return created


@pytest.mark.invoices
class TestInvoiceEndpoints:
    def test_list_newest_first(self, client, auth_headers, billed):
        response = client.get("/api/invoices", headers=auth_headers)

        assert response.status_code == 200
        numbers = [i["invoice_number"] for i in response.get_json()["data"]]
        assert numbers == ["INV00002", "INV00001"]

    def test_filter_by_customer(self, client, auth_headers, billed):
        response = client.get("/api/invoices?customer_id=4242", headers=auth_headers)

        assert response.get_json()["data"] == []

    def test_get_invoice(self, client, auth_headers, billed):
        invoice_id = billed["invoice"]["id"]

        response = client.get(f"/api/invoices/{invoice_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["items"][0]["quantity"] == 1

    def test_get_missing_invoice(self, client, auth_headers):
        response = client.get("/api/invoices/777", headers=auth_headers)

        assert response.status_code == 404


@pytest.mark.invoices
class TestTransactionEndpoints:
    def test_filter_by_type(self, client, auth_headers, billed):
        response = client.get(
            "/api/transactions?transaction_type=personal_training_renewal", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert len(data) == 1
        assert data[0]["amount"] == 3000.0

    def test_unknown_type(self, client, auth_headers):
        response = client.get("/api/transactions?transaction_type=REFUND", headers=auth_headers)

        assert response.status_code == 400


class TestTrainerEndpoints:
    def test_create_trainer(self, client, auth_headers, sample_gym, db):
        response = client.post(
            "/api/trainers",
            json={"name": "Meera Iyer", "specialization": "Yoga", "experience": "4"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["status"] == "active"
        assert db.session.get(Trainer, data["id"]).gym_id == sample_gym.id

    def test_create_trainer_bad_status(self, client, auth_headers):
        response = client.post(
            "/api/trainers", json={"name": "Meera Iyer", "status": "retired"}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_create_trainer_missing_name(self, client, auth_headers):
        response = client.post("/api/trainers", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_list_and_get(self, client, auth_headers, sample_trainer):
        listing = client.get("/api/trainers", headers=auth_headers)
        assert [t["name"] for t in listing.get_json()["data"]] == ["Vikram Singh"]

        single = client.get(f"/api/trainers/{sample_trainer.id}", headers=auth_headers)
        assert single.status_code == 200
        assert single.get_json()["data"]["experience"] == 6

    def test_get_missing_trainer(self, client, auth_headers):
        response = client.get("/api/trainers/555", headers=auth_headers)

        assert response.status_code == 404
