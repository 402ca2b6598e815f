"""
Settings tests.

Verifies the loader precedence (persisted rows win, built-in defaults only
while a table is empty), option CRUD, card company terms, and the bulk save.
"""

import pytest

from hazel.models import CardCompanySetting, ProductCategory
from hazel.services import settings_service
from hazel.services.settings_service import slugify_label
from hazel.settings_catalog import CARD_COMPANY_DEFAULTS, SALE_CATEGORY_DEFAULTS
from hazel.validation import ConflictError, NotFoundError, ValidationError


class TestLoaderPrecedence:

    def test_defaults_while_table_is_empty(self, db_session):
        options = settings_service.list_options("sale_categories")
        assert [o["value"] for o in options] == [d.value for d in SALE_CATEGORY_DEFAULTS]
        assert all(o["is_default"] for o in options)

    def test_first_saved_row_replaces_defaults(self, db_session):
        created = settings_service.create_option("sale_categories", "Peony Box", "#ff00aa")

        options = settings_service.list_options("sale_categories")
        assert options == [created]
        assert created["value"] == "peony_box"
        assert created["is_default"] is False

    def test_card_companies_fall_back_to_builtin_terms(self, db_session):
        companies = settings_service.list_card_companies()
        assert len(companies) == len(CARD_COMPANY_DEFAULTS)
        assert settings_service.resolve_card_company("삼성카드")["fee_rate"] == 2.2

    def test_seed_defaults_is_idempotent(self, db_session):
        first = settings_service.seed_defaults()
        second = settings_service.seed_defaults()

        assert first["sale_categories"] == len(SALE_CATEGORY_DEFAULTS)
        assert first["card_company_settings"] == len(CARD_COMPANY_DEFAULTS)
        assert all(count == 0 for count in second.values())


class TestOptions:

    def test_duplicate_label_is_a_conflict(self, db_session):
        settings_service.create_option("payment_methods", "Gift Card")
        with pytest.raises(ConflictError):
            settings_service.create_option("payment_methods", "gift card")

    def test_label_without_ascii_gets_generated_value(self, db_session):
        created = settings_service.create_option("expense_categories", "포장재")
        assert created["value"].startswith("cat_")
        assert created["color"] == "#f43f5e"

    def test_update_keeps_value(self, db_session):
        created = settings_service.create_option("sale_categories", "Peony Box")
        updated = settings_service.update_option("sale_categories", created["id"], label="작약 박스", color="#123456")
        assert updated["value"] == "peony_box"
        assert updated["label"] == "작약 박스"

    @pytest.mark.parametrize("color", ["red", "#12345", "#GGGGGG"])
    def test_bad_color_is_rejected(self, db_session, color):
        with pytest.raises(ValidationError):
            settings_service.create_option("sale_categories", "Peony Box", color)

    def test_slugify(self):
        assert slugify_label("  Dried Flower  ") == "dried_flower"
        assert slugify_label("Rose & Co.") == "rose__co"


class TestCardCompanies:

    def test_deactivate_then_recreate_revives_row(self, db_session):
        created = settings_service.create_card_company({"name": "카카오뱅크카드", "fee_rate": 1.5, "deposit_days": 1})
        settings_service.deactivate_card_company(created["id"])
        assert settings_service.resolve_card_company("카카오뱅크카드") is None

        revived = settings_service.create_card_company({"name": "카카오뱅크카드", "fee_rate": 1.8})
        assert revived["id"] == created["id"]
        assert revived["is_active"] is True
        assert revived["fee_rate"] == 1.8

    def test_duplicate_active_company_is_a_conflict(self, db_session):
        settings_service.create_card_company({"name": "신한카드"})
        with pytest.raises(ConflictError):
            settings_service.create_card_company({"name": "신한카드"})

    def test_fee_rate_out_of_range(self, db_session):
        with pytest.raises(ValidationError):
            settings_service.create_card_company({"name": "신한카드", "fee_rate": 120})

    def test_saved_terms_drive_sale_fees(self, db_session):
        settings_service.create_card_company({"name": "신한카드", "fee_rate": 3.0, "deposit_days": 5})
        terms = settings_service.resolve_card_company("신한카드")
        assert terms["fee_rate"] == 3.0
        assert terms["deposit_days"] == 5
        # Saved rows replace the built-in list entirely
        assert settings_service.resolve_card_company("국민카드") is None


class TestBulkSave:

    def test_save_all_updates_companies_and_orders_categories(self, db_session):
        company = CardCompanySetting(name="신한카드", fee_rate=2.0, deposit_days=3, is_active=True)
        old = ProductCategory(name="화환", sort_order=1, is_active=True)
        db_session.add_all([company, old])
        db_session.commit()

        result = settings_service.save_all_settings(
            [{"id": company.id, "fee_rate": 2.5, "deposit_days": 4}],
            ["꽃바구니", "꽃다발", "꽃바구니"],
        )

        assert result["card_companies"][0]["fee_rate"] == 2.5
        assert result["card_companies"][0]["deposit_days"] == 4
        assert [c["name"] for c in result["product_categories"]] == ["꽃바구니", "꽃다발"]
        assert [c["sort_order"] for c in result["product_categories"]] == [1, 2]

        db_session.expire_all()
        assert db_session.get(ProductCategory, old.id).is_active is False

    def test_unknown_company_rolls_back(self, db_session):
        db_session.add(ProductCategory(name="화환", sort_order=1, is_active=True))
        db_session.commit()

        with pytest.raises(NotFoundError):
            settings_service.save_all_settings([{"id": 999, "fee_rate": 1.0}], ["꽃다발"])

        names = [c["name"] for c in settings_service.list_product_categories()]
        assert names == ["화환"]


class TestSettingsRoutes:

    def test_option_lists_by_slug(self, client, headers):
        resp = client.get("/api/settings/payment-methods", headers=headers)
        assert resp.status_code == 200
        assert resp.json[0]["value"] == "cash"

        assert client.get("/api/settings/colors", headers=headers).status_code == 404

    def test_create_option_conflict_returns_409(self, client, headers):
        body = {"label": "Peony Box", "color": "#ff00aa"}
        assert client.post("/api/settings/sale-categories", json=body, headers=headers).status_code == 201
        resp = client.post("/api/settings/sale-categories", json=body, headers=headers)
        assert resp.status_code == 409

    def test_create_option_without_label_returns_400(self, client, headers):
        assert client.post("/api/settings/sale-categories", json={}, headers=headers).status_code == 400

    def test_card_company_delete_deactivates(self, client, headers):
        created = client.post("/api/settings/card-companies", json={"name": "현대카드"}, headers=headers).json
        resp = client.delete(f"/api/settings/card-companies/{created['id']}", headers=headers)
        assert resp.status_code == 200

        names = [c["name"] for c in client.get("/api/settings/card-companies", headers=headers).json]
        assert "현대카드" not in names
