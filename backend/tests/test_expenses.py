"""
Expense tests: server-computed totals and month filtering.
"""

import pytest

from hazel.services import expense_service
from hazel.validation import NotFoundError, ValidationError


def _payload(**overrides):
    payload = {
        "date": "2024-03-10",
        "item_name": "장미 한 단",
        "category": "flower_purchase",
        "unit_price": 5000,
        "quantity": 3,
        "payment_method": "card",
    }
    payload.update(overrides)
    return payload


class TestExpenseTotals:

    def test_total_is_unit_price_times_quantity(self, db_session):
        expense = expense_service.create_expense(_payload())
        assert expense["total_amount"] == 15000

    def test_quantity_defaults_to_one(self, db_session):
        payload = _payload()
        del payload["quantity"]
        assert expense_service.create_expense(payload)["total_amount"] == 5000

    def test_client_total_is_not_accepted(self, db_session):
        with pytest.raises(ValidationError):
            expense_service.create_expense(_payload(total_amount=1))

    def test_update_recomputes_total(self, db_session):
        expense = expense_service.create_expense(_payload())
        assert expense_service.update_expense(expense["id"], {"quantity": 4})["total_amount"] == 20000
        assert expense_service.update_expense(expense["id"], {"unit_price": 6000})["total_amount"] == 24000

    def test_zero_quantity_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            expense_service.create_expense(_payload(quantity=0))

    def test_decimal_price_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            expense_service.create_expense(_payload(unit_price=4999.5))


class TestExpenseListing:

    def test_month_filter_and_order(self, db_session):
        expense_service.create_expense(_payload(date="2024-02-29"))
        expense_service.create_expense(_payload(date="2024-03-01"))
        expense_service.create_expense(_payload(date="2024-03-31"))

        result = expense_service.list_expenses("2024-03")
        assert [e["date"] for e in result] == ["2024-03-31", "2024-03-01"]

    def test_delete_unknown_expense(self, db_session):
        with pytest.raises(NotFoundError):
            expense_service.delete_expense(12345)


class TestExpenseRoutes:

    def test_crud(self, client, headers):
        resp = client.post("/api/expenses", json=_payload(), headers=headers)
        assert resp.status_code == 201
        expense_id = resp.json["id"]

        resp = client.put(f"/api/expenses/{expense_id}", json={"quantity": 2}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["total_amount"] == 10000

        resp = client.get("/api/expenses?month=2024-03", headers=headers)
        assert [e["id"] for e in resp.json] == [expense_id]

        assert client.delete(f"/api/expenses/{expense_id}", headers=headers).status_code == 200
        assert client.get(f"/api/expenses/{expense_id}", headers=headers).status_code == 404

    def test_missing_fields_return_400(self, client, headers):
        resp = client.post("/api/expenses", json={"item_name": "리본"}, headers=headers)
        assert resp.status_code == 400
        assert "Missing required fields" in resp.json["error"]
