# Overview: Pytest coverage for the HTTP adapter: actor loading and error status mapping.

import pytest

from conftest import actor_headers


@pytest.fixture
def headers_a(clerk_a):
    return actor_headers(clerk_a)


def sale_body(unit, customer, **overrides):
    body = {
        "serial_number": unit.serial_number,
        "customer_id": customer.id,
        "kind": "INSTALLMENT",
        "total_price": "1200.00",
        "paid_amount": "0",
        "installment_count": 4,
    }
    body.update(overrides)
    return body


class TestActorLoading:
    def test_no_actor_is_401(self, client, db_session):
        assert client.get("/api/sales/").status_code == 401

    def test_health_is_public(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json["checks"]["database"]["status"] == "healthy"


class TestSalesRoutes:
    def test_create_and_get(self, client, db_session, headers_a, unit_a, customer_a):
        response = client.post("/api/sales/", json=sale_body(unit_a, customer_a), headers=headers_a)
        assert response.status_code == 201
        sale = response.json["sale"]
        assert sale["total_price"] == "1200.00"
        assert [i["amount"] for i in sale["installments"]] == ["300.00"] * 4

        response = client.get(f"/api/sales/{sale['id']}", headers=headers_a)
        assert response.status_code == 200

    def test_validation_is_400(self, client, db_session, headers_a, unit_a, customer_a):
        body = sale_body(unit_a, customer_a, kind="BARTER")
        assert client.post("/api/sales/", json=body, headers=headers_a).status_code == 400

    def test_foreign_unit_is_404(self, client, db_session, headers_a, unit_b, customer_a):
        response = client.post("/api/sales/", json=sale_body(unit_b, customer_a), headers=headers_a)
        assert response.status_code == 404

    def test_foreign_branch_request_is_403(self, client, db_session, headers_a, branch_b):
        response = client.get(f"/api/sales/?branch_id={branch_b.id}", headers=headers_a)
        assert response.status_code == 403

    def test_all_branches_requires_global_role(self, client, db_session, headers_a):
        response = client.get("/api/sales/?all_branches=1", headers=headers_a)
        assert response.status_code == 403

    def test_duplicate_sale_is_409(self, client, db_session, headers_a, unit_a, customer_a):
        client.post("/api/sales/", json=sale_body(unit_a, customer_a), headers=headers_a)
        response = client.post("/api/sales/", json=sale_body(unit_a, customer_a), headers=headers_a)
        assert response.status_code == 409

    def test_pay_and_void(self, client, db_session, headers_a, unit_a, customer_a):
        sale = client.post("/api/sales/", json=sale_body(unit_a, customer_a), headers=headers_a).json["sale"]
        inst_id = sale["installments"][0]["id"]

        response = client.post(
            f"/api/sales/installments/{inst_id}/pay",
            json={"payment_place": "Desk", "receipt_number": "R-1"},
            headers=headers_a,
        )
        assert response.status_code == 200
        assert response.json["installment"]["is_paid"] is True

        response = client.post(
            f"/api/sales/installments/{inst_id}/pay",
            json={"payment_place": "Desk", "receipt_number": "R-2"},
            headers=headers_a,
        )
        assert response.status_code == 409

        response = client.delete(f"/api/sales/{sale['id']}", headers=headers_a)
        assert response.status_code == 200
        assert client.get(f"/api/sales/{sale['id']}", headers=headers_a).status_code == 404

    def test_global_actor_all_branches(self, client, db_session, admin, clerk_a, clerk_b,
                                       unit_a, unit_b, customer_a, customer_b):
        client.post("/api/sales/", json=sale_body(unit_a, customer_a), headers=actor_headers(clerk_a))
        client.post("/api/sales/", json=sale_body(unit_b, customer_b), headers=actor_headers(clerk_b))

        response = client.get("/api/sales/?all_branches=1", headers=actor_headers(admin))
        assert response.status_code == 200
        assert len(response.json["sales"]) == 2


class TestPaymentRoutes:
    def test_manual_payment(self, client, db_session, headers_a, customer_a):
        body = {"customer_id": customer_a.id, "amount": "10", "payment_place": "Desk", "receipt_number": "M-1"}
        response = client.post("/api/payments/", json=body, headers=headers_a)
        assert response.status_code == 201
        assert response.json["payment"]["amount"] == "10.00"

        response = client.get("/api/payments/", headers=headers_a)
        assert len(response.json["payments"]) == 1
        assert response.json["total"] == "10.00"


class TestMachineHistoryRoute:
    def test_sell_then_void(self, client, db_session, headers_a, clerk_b, unit_a, customer_a):
        sale = client.post("/api/sales/", json=sale_body(unit_a, customer_a), headers=headers_a).json["sale"]
        client.delete(f"/api/sales/{sale['id']}", headers=headers_a)

        response = client.get(f"/api/sales/machines/{unit_a.serial_number}/history", headers=headers_a)
        assert response.status_code == 200
        assert [e["action"] for e in response.json["history"]] == ["SELL", "SALE_VOID"]

        response = client.get(f"/api/sales/machines/{unit_a.serial_number}/history", headers=actor_headers(clerk_b))
        assert response.json["history"] == []
