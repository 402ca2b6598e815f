"""
Sales tests.

Verifies:
- Customer resolution: explicit id, name + phone find-or-create, walk-in
- Card settlement defaults from card company terms (fee rounded half-up)
- Non-card sales are never waiting on a deposit
- Photo upload/delete keeps storage and the photo list in step
"""

from datetime import date
from io import BytesIO

import pytest

from hazel.models import Customer, PhotoCard, Reservation, Sale
from hazel.services import sales_service, statistics_service
from hazel.services.sales_service import calculate_card_fee
from hazel.validation import NotFoundError, ValidationError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _payload(**overrides):
    payload = {
        "date": "2024-03-15",
        "product_category": "bouquet",
        "amount": 50000,
        "payment_method": "cash",
    }
    payload.update(overrides)
    return payload


class TestCardFee:

    @pytest.mark.parametrize(
        "amount,rate,expected",
        [
            (50000, 2.0, 1000),
            (125, 2.0, 3),
            (12345, 2.2, 272),
            (10000, 0, 0),
        ],
    )
    def test_fee_rounds_half_up(self, amount, rate, expected):
        assert calculate_card_fee(amount, rate) == expected


class TestCreateSale:

    def test_defaults_for_minimal_payload(self, db_session):
        sale = sales_service.create_sale(_payload())

        assert sale["product_name"] == "bouquet"
        assert sale["reservation_channel"] == "other"
        assert sale["has_review"] is False
        assert sale["photos"] == []
        assert sale["deposit_status"] == "not_applicable"
        assert sale["customer_id"] is None

    def test_card_sale_gets_settlement_defaults(self, db_session):
        sale = sales_service.create_sale(_payload(payment_method="card", card_company="신한카드"))

        assert sale["fee"] == 1000
        assert sale["expected_deposit"] == 49000
        assert sale["expected_deposit_date"] == "2024-03-18"
        assert sale["deposit_status"] == "pending"

    def test_explicit_card_values_are_kept(self, db_session):
        sale = sales_service.create_sale(_payload(
            payment_method="card", card_company="신한카드", fee=700, expected_deposit_date="2024-03-20",
        ))
        assert sale["fee"] == 700
        assert sale["expected_deposit"] == 49300
        assert sale["expected_deposit_date"] == "2024-03-20"

    def test_unknown_card_company_is_pending_without_fee(self, db_session):
        sale = sales_service.create_sale(_payload(payment_method="card", card_company="없는카드"))
        assert sale["deposit_status"] == "pending"
        assert sale["fee"] is None

    @pytest.mark.parametrize("method", ["cash", "transfer", "naverpay", "kakaopay"])
    def test_non_card_sale_is_not_applicable(self, db_session, method):
        sale = sales_service.create_sale(_payload(payment_method=method))
        assert sale["deposit_status"] == "not_applicable"

    def test_invalid_payment_method_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            sales_service.create_sale(_payload(payment_method="bitcoin"))
        assert db_session.query(Sale).count() == 0

    def test_missing_required_field_is_rejected(self, db_session):
        payload = _payload()
        del payload["amount"]
        with pytest.raises(ValidationError) as exc:
            sales_service.create_sale(payload)
        assert "amount" in str(exc.value)

    def test_negative_amount_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            sales_service.create_sale(_payload(amount=-1))


class TestCustomerResolution:

    def test_explicit_customer_id_links_customer(self, db_session):
        customer = Customer(name="김민지", phone="010-1111-2222")
        db_session.add(customer)
        db_session.commit()

        sale = sales_service.create_sale(_payload(customer_id=customer.id))

        assert sale["customer_id"] == customer.id
        assert sale["customer_name"] == "김민지"
        assert sale["customer_phone"] == "010-1111-2222"

    def test_unknown_customer_id_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            sales_service.create_sale(_payload(customer_id=999))

    def test_name_and_phone_create_customer_once(self, db_session):
        first = sales_service.create_sale(_payload(customer_name="이서연", customer_phone="01033334444"))
        second = sales_service.create_sale(_payload(customer_name="이서연", customer_phone="010-3333-4444"))

        assert first["customer_id"] is not None
        assert first["customer_id"] == second["customer_id"]
        assert first["customer_phone"] == "010-3333-4444"
        assert db_session.query(Customer).count() == 1

    def test_name_only_is_a_walk_in(self, db_session):
        sale = sales_service.create_sale(_payload(customer_name="지나가던 손님"))
        assert sale["customer_id"] is None
        assert sale["customer_name"] == "지나가던 손님"
        assert db_session.query(Customer).count() == 0

    def test_phone_only_sale_stores_canonical_phone(self, db_session):
        sales_service.create_sale(_payload(
            date="2024-02-10", customer_name="김민지", customer_phone="01011112222",
        ))
        march = sales_service.create_sale(_payload(customer_phone="01011112222"))

        assert march["customer_id"] is None
        assert march["customer_phone"] == "010-1111-2222"
        assert statistics_service.customer_stats("2024-03") == {
            "new_customers": 0,
            "returning_customers": 1,
            "total_customers": 1,
        }

    def test_update_normalizes_phone(self, db_session):
        sale = sales_service.create_sale(_payload())
        updated = sales_service.update_sale(sale["id"], {"customer_phone": "010 2222 3333"})
        assert updated["customer_phone"] == "010-2222-3333"

    def test_reads_prefer_live_customer_data(self, db_session):
        sale = sales_service.create_sale(_payload(customer_name="이서연", customer_phone="010-3333-4444"))
        customer = db_session.get(Customer, sale["customer_id"])
        customer.name = "이서연(VIP)"
        db_session.commit()

        assert sales_service.get_sale(sale["id"])["customer_name"] == "이서연(VIP)"


class TestUpdateSale:

    def test_switching_to_card_applies_settlement(self, db_session):
        sale = sales_service.create_sale(_payload())
        updated = sales_service.update_sale(sale["id"], {"payment_method": "card", "card_company": "삼성카드"})

        assert updated["deposit_status"] == "pending"
        assert updated["fee"] == 1100
        assert updated["expected_deposit"] == 48900
        assert updated["expected_deposit_date"] == "2024-03-17"

    def test_switching_away_from_card_clears_pending(self, db_session):
        sale = sales_service.create_sale(_payload(payment_method="card", card_company="신한카드"))
        updated = sales_service.update_sale(sale["id"], {"payment_method": "cash"})
        assert updated["deposit_status"] == "not_applicable"

    def test_amount_change_recomputes_fee(self, db_session):
        sale = sales_service.create_sale(_payload(payment_method="card", card_company="신한카드"))
        updated = sales_service.update_sale(sale["id"], {"amount": 100000})
        assert updated["fee"] == 2000
        assert updated["expected_deposit"] == 98000

    def test_unknown_sale_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.update_sale(999, {"amount": 1})


class TestDeleteSale:

    def test_detaches_reservation_and_photo_card(self, db_session):
        sale = sales_service.create_sale(_payload())
        reservation = Reservation(
            date=date(2024, 3, 15), customer_name="김민지", title="생일 꽃다발",
            status="completed", sale_id=sale["id"],
        )
        card = PhotoCard(title="생일 꽃다발", tags=[], photos=[], sale_id=sale["id"])
        db_session.add_all([reservation, card])
        db_session.commit()
        reservation_id, card_id = reservation.id, card.id

        sales_service.delete_sale(sale["id"])

        db_session.expire_all()
        assert db_session.get(Sale, sale["id"]) is None
        assert db_session.get(Reservation, reservation_id).sale_id is None
        assert db_session.get(PhotoCard, card_id).sale_id is None


class TestSalesRoutes:

    def test_list_filters_by_month(self, client, headers, db_session):
        sales_service.create_sale(_payload(date="2024-03-01"))
        sales_service.create_sale(_payload(date="2024-03-31"))
        sales_service.create_sale(_payload(date="2024-04-01"))

        resp = client.get("/api/sales?month=2024-03", headers=headers)
        assert resp.status_code == 200
        assert [s["date"] for s in resp.json] == ["2024-03-31", "2024-03-01"]

    def test_bad_month_returns_400(self, client, headers):
        assert client.get("/api/sales?month=2024-13", headers=headers).status_code == 400

    def test_create_returns_201(self, client, headers):
        resp = client.post("/api/sales", json=_payload(payment_method="card", card_company="신한카드"), headers=headers)
        assert resp.status_code == 201
        assert resp.json["deposit_status"] == "pending"

    def test_unknown_field_returns_400(self, client, headers):
        resp = client.post("/api/sales", json=_payload(discount=10), headers=headers)
        assert resp.status_code == 400
        assert "discount" in resp.json["error"]

    def test_review_toggle(self, client, headers):
        sale = client.post("/api/sales", json=_payload(), headers=headers).json
        resp = client.patch(f"/api/sales/{sale['id']}/review", json={"has_review": True}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["has_review"] is True

        resp = client.patch(f"/api/sales/{sale['id']}/review", json={"has_review": "yes"}, headers=headers)
        assert resp.status_code == 400

    def test_delete_unknown_sale_returns_404(self, client, headers):
        assert client.delete("/api/sales/999", headers=headers).status_code == 404


class TestSalePhotos:

    def test_upload_and_delete(self, client, headers):
        sale = client.post("/api/sales", json=_payload(), headers=headers).json

        resp = client.post(
            f"/api/sales/{sale['id']}/photos",
            data={"files": [(BytesIO(PNG_BYTES), "rose.png"), (BytesIO(PNG_BYTES), "tulip.png")]},
            content_type="multipart/form-data",
            headers=headers,
        )
        assert resp.status_code == 201
        photos = resp.json["photos"]
        assert len(photos) == 2
        assert all(url.startswith(f"/media/sale-photos/{sale['id']}/") for url in photos)

        resp = client.delete(f"/api/sales/{sale['id']}/photos", json={"url": photos[0]}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["photos"] == [photos[1]]

    def test_non_image_is_rejected(self, client, headers):
        sale = client.post("/api/sales", json=_payload(), headers=headers).json
        resp = client.post(
            f"/api/sales/{sale['id']}/photos",
            data={"files": [(BytesIO(b"#!/bin/sh"), "script.sh")]},
            content_type="multipart/form-data",
            headers=headers,
        )
        assert resp.status_code == 400

    def test_delete_unknown_photo_returns_404(self, client, headers):
        sale = client.post("/api/sales", json=_payload(), headers=headers).json
        resp = client.delete(f"/api/sales/{sale['id']}/photos", json={"url": "/media/sale-photos/x.png"}, headers=headers)
        assert resp.status_code == 404
