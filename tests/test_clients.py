"""Tests for client records: service functions and /api/clients endpoints."""

from datetime import date, timedelta

import pytest

import clients
from errors import NotFoundError, ValidationError
from utils import calc_end_date, today_utc


def _create(client, headers, payload, **overrides):
    resp = client.post("/api/clients", json={**payload, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


class TestCreateClient:
    def test_derives_end_date_and_writes_payment_and_history(self, client, auth_headers, new_client_payload):
        created = _create(client, auth_headers, new_client_payload)
        assert created["end_date"] == "2024-02-29"
        assert created["payment_status"] == "Paid"

        detail = client.get(f"/api/clients/{created['id']}", headers=auth_headers).get_json()["data"]
        [payment] = detail["payments"]
        assert payment["amount"] == 300
        assert payment["payment_date"] == "2024-01-31"
        assert payment["payment_method"] == "Cash"
        assert payment["notes"] == "Initial payment"
        [entry] = detail["history"]
        assert entry["action_type"] == "CREATED"
        assert entry["description"] == "Client account created with Monthly plan"

    def test_status_inferred_from_end_date(self, database, new_client_payload):
        today = date(2024, 2, 10)
        active = clients.create_client(database, new_client_payload, today=today)
        assert active["status"] == "Active"
        expired = clients.create_client(database, new_client_payload, today=date(2024, 3, 1))
        assert expired["status"] == "Expired"

    def test_missing_fields(self, client, auth_headers):
        resp = client.post("/api/clients", json={"full_name": "No Plan"}, headers=auth_headers)
        assert resp.status_code == 400
        assert "plan_type" in resp.get_json()["message"]

    def test_unknown_plan_type_rejected(self, client, auth_headers, new_client_payload):
        resp = client.post("/api/clients", json={**new_client_payload, "plan_type": "Weekly"}, headers=auth_headers)
        assert resp.status_code == 400
        assert client.get("/api/clients", headers=auth_headers).get_json()["count"] == 0

    def test_failed_history_write_rolls_back_client(self, database, new_client_payload, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("history table unavailable")

        monkeypatch.setattr(clients, "_add_history", boom)
        with pytest.raises(RuntimeError):
            clients.create_client(database, new_client_payload)
        assert database.count("clients") == 0
        assert database.count("payments") == 0

    @pytest.mark.parametrize("body", [[1], ["Ahmed", "0100"], "text", 7])
    def test_non_object_body(self, client, auth_headers, body):
        resp = client.post("/api/clients", json=body, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_non_string_email(self, client, auth_headers, database, new_client_payload):
        resp = client.post("/api/clients", json={**new_client_payload, "email": 5}, headers=auth_headers)
        assert resp.status_code == 400
        assert "Email" in resp.get_json()["message"]
        assert database.count("clients") == 0

    def test_requires_token(self, client, new_client_payload):
        resp = client.post("/api/clients", json=new_client_payload)
        assert resp.status_code == 401


class TestListAndGet:
    def test_filters_and_search(self, client, auth_headers, new_client_payload):
        _create(client, auth_headers, new_client_payload)
        _create(client, auth_headers, new_client_payload, full_name="Mona Ali", email="mona@example.com",
                plan_type="Yearly", start_date=today_utc().isoformat())

        resp = client.get("/api/clients", headers=auth_headers).get_json()
        assert resp["count"] == 2
        # newest first
        assert resp["data"][0]["full_name"] == "Mona Ali"

        yearly = client.get("/api/clients?plan_type=Yearly", headers=auth_headers).get_json()
        assert [c["full_name"] for c in yearly["data"]] == ["Mona Ali"]

        active = client.get("/api/clients?status=Active", headers=auth_headers).get_json()
        assert [c["full_name"] for c in active["data"]] == ["Mona Ali"]

        found = client.get("/api/clients?search=ahmed", headers=auth_headers).get_json()
        assert [c["full_name"] for c in found["data"]] == ["Ahmed Hassan"]

    def test_get_missing_client(self, client, auth_headers):
        resp = client.get("/api/clients/999", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.get_json() == {"success": False, "message": "Client not found"}


class TestUpdate:
    def test_update_recomputes_end_date(self, client, auth_headers, new_client_payload):
        created = _create(client, auth_headers, new_client_payload)
        resp = client.put(
            f"/api/clients/{created['id']}",
            json={"plan_type": "Quarterly", "id": 555, "created_at": "1999-01-01", "end_date": "2099-01-01"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        updated = resp.get_json()["data"]
        assert updated["id"] == created["id"]
        assert updated["created_at"] == created["created_at"]
        assert updated["end_date"] == "2024-04-30"

        detail = client.get(f"/api/clients/{created['id']}", headers=auth_headers).get_json()["data"]
        assert [h["action_type"] for h in detail["history"]] == ["UPDATED", "CREATED"]

    def test_update_contact_only_keeps_dates(self, database, new_client_payload):
        created = clients.create_client(database, new_client_payload)
        updated = clients.update_client(database, created["id"], {"phone": "0199"})
        assert updated["phone"] == "0199"
        assert updated["end_date"] == created["end_date"]

    def test_empty_update(self, database, new_client_payload):
        created = clients.create_client(database, new_client_payload)
        with pytest.raises(ValidationError):
            clients.update_client(database, created["id"], {"id": 3})

    def test_update_missing_client(self, database):
        with pytest.raises(NotFoundError):
            clients.update_client(database, 42, {"phone": "1"})


class TestDelete:
    def test_delete_cascades(self, client, auth_headers, database, new_client_payload):
        created = _create(client, auth_headers, new_client_payload)
        resp = client.delete(f"/api/clients/{created['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert database.count("clients") == 0
        assert database.count("payments") == 0
        assert database.count("client_history") == 0

    def test_delete_missing(self, client, auth_headers):
        assert client.delete("/api/clients/999", headers=auth_headers).status_code == 404

    def test_bulk_delete(self, client, auth_headers, database, new_client_payload):
        ids = [_create(client, auth_headers, new_client_payload)["id"] for _ in range(3)]
        resp = client.post("/api/clients/bulk-delete", json={"ids": ids[:2]}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "2 clients deleted successfully"
        assert database.count("clients") == 1

    @pytest.mark.parametrize(
        "body",
        [{"ids": []}, {}, {"ids": "1,2"}, {"ids": ["x"]}, {"ids": [1.5]}, {"ids": [True]}, {"ids": [None]}],
    )
    def test_bulk_delete_invalid_ids(self, client, auth_headers, database, new_client_payload, body):
        _create(client, auth_headers, new_client_payload)
        resp = client.post("/api/clients/bulk-delete", json=body, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid client IDs"
        assert database.count("clients") == 1

    def test_bulk_delete_float_id_does_not_hit_neighbour(self, client, auth_headers, database, new_client_payload):
        cid = _create(client, auth_headers, new_client_payload)["id"]
        resp = client.post("/api/clients/bulk-delete", json={"ids": [cid + 0.9]}, headers=auth_headers)
        assert resp.status_code == 400
        assert database.count("clients") == 1

    def test_bulk_delete_accepts_digit_strings(self, client, auth_headers, database, new_client_payload):
        cid = _create(client, auth_headers, new_client_payload)["id"]
        resp = client.post("/api/clients/bulk-delete", json={"ids": [str(cid)]}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"deleted": 1}

    def test_bulk_delete_array_body(self, client, auth_headers):
        resp = client.post("/api/clients/bulk-delete", json=[1, 2], headers=auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Request body must be a JSON object"


class TestRenewAndPayment:
    def test_renew(self, client, auth_headers, new_client_payload):
        created = _create(client, auth_headers, new_client_payload)
        resp = client.post(
            f"/api/clients/{created['id']}/renew",
            json={"plan_type": "Yearly", "plan_amount": 3000, "payment_method": "Card"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        renewed = resp.get_json()["data"]
        today = today_utc()
        assert renewed["start_date"] == today.isoformat()
        assert renewed["end_date"] == calc_end_date(today.isoformat(), "Yearly")
        assert renewed["status"] == "Active"
        assert renewed["payment_status"] == "Paid"

        detail = client.get(f"/api/clients/{created['id']}", headers=auth_headers).get_json()["data"]
        assert detail["payments"][0]["notes"] == "Plan renewal"
        assert detail["payments"][0]["payment_method"] == "Card"
        assert detail["history"][0]["description"] == "Plan renewed: Yearly"

    def test_renew_with_explicit_start(self, database, new_client_payload):
        created = clients.create_client(database, new_client_payload)
        renewed = clients.renew_plan(
            database, created["id"], {"plan_type": "Monthly", "plan_amount": 300, "start_date": "2024-02-29"}
        )
        assert renewed["end_date"] == "2024-03-29"

    def test_renew_missing_client(self, client, auth_headers):
        resp = client.post("/api/clients/999/renew", json={"plan_type": "Monthly", "plan_amount": 1},
                           headers=auth_headers)
        assert resp.status_code == 404

    def test_renew_requires_plan(self, client, auth_headers, new_client_payload):
        created = _create(client, auth_headers, new_client_payload)
        resp = client.post(f"/api/clients/{created['id']}/renew", json={"plan_amount": 1}, headers=auth_headers)
        assert resp.status_code == 400

    def test_add_payment(self, client, auth_headers, new_client_payload):
        created = _create(client, auth_headers, new_client_payload, payment_status="Pending")
        assert created["payment_status"] == "Pending"

        resp = client.post(
            f"/api/clients/{created['id']}/payment",
            json={"amount": 150, "payment_date": "2024-02-05", "notes": "half"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        payment = resp.get_json()["data"]
        assert payment["amount"] == 150
        assert payment["payment_method"] == "Cash"

        detail = client.get(f"/api/clients/{created['id']}", headers=auth_headers).get_json()["data"]
        assert detail["payment_status"] == "Paid"
        assert detail["history"][0]["action_type"] == "PAYMENT"
        assert detail["history"][0]["description"] == "Payment received: ₹150"

    @pytest.mark.parametrize("body", [{}, {"amount": 0}, {"amount": "abc"}, {"amount": 5, "payment_method": "Gold"}])
    def test_add_payment_invalid(self, client, auth_headers, new_client_payload, body):
        created = _create(client, auth_headers, new_client_payload)
        resp = client.post(f"/api/clients/{created['id']}/payment", json=body, headers=auth_headers)
        assert resp.status_code == 400


def test_refresh_statuses(database, new_client_payload):
    today = today_utc()
    stale = clients.create_client(database, new_client_payload, today=date(2024, 2, 1))
    fresh = clients.create_client(database, {**new_client_payload, "start_date": today.isoformat()})
    assert stale["status"] == "Active"

    assert clients.refresh_statuses(database, today) == 1
    assert clients.get_client(database, stale["id"])["status"] == "Expired"
    assert clients.get_client(database, fresh["id"])["status"] == "Active"


def test_insert_sample_data(database):
    today = today_utc()
    ids = clients.insert_sample_data(database, today)
    assert len(ids) == 3
    assert database.count("payments") == 3
    first = clients.get_client(database, ids[0])
    assert today <= date.fromisoformat(first["end_date"]) <= today + timedelta(days=7)


def test_unexpected_error_is_generic_500(client, auth_headers, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(clients, "list_clients", boom)
    resp = client.get("/api/clients", headers=auth_headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Failed to fetch clients"}
