from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_utc_z


class _OptionMixin:
    """value/label/color/sort_order rows backing the option pickers."""

    id = db.Column(db.Integer, primary_key=True)
    value = db.Column(db.String(50), nullable=False)
    label = db.Column(db.String(100), nullable=False)
    color = db.Column(db.String(7), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "value": self.value,
            "label": self.label,
            "color": self.color,
            "sort_order": self.sort_order,
            "is_default": False,
            "created_at": to_utc_z(self.created_at),
        }


class SaleCategory(_OptionMixin, db.Model):
    __tablename__ = "sale_categories"
    __table_args__ = (
        db.UniqueConstraint("value", name="uq_sale_categories_value"),
        {"sqlite_autoincrement": True},
    )


class PaymentMethodOption(_OptionMixin, db.Model):
    __tablename__ = "payment_methods"
    __table_args__ = (
        db.UniqueConstraint("value", name="uq_payment_methods_value"),
        {"sqlite_autoincrement": True},
    )


class ExpenseCategory(_OptionMixin, db.Model):
    __tablename__ = "expense_categories"
    __table_args__ = (
        db.UniqueConstraint("value", name="uq_expense_categories_value"),
        {"sqlite_autoincrement": True},
    )


class ExpensePaymentMethod(_OptionMixin, db.Model):
    __tablename__ = "expense_payment_methods"
    __table_args__ = (
        db.UniqueConstraint("value", name="uq_expense_payment_methods_value"),
        {"sqlite_autoincrement": True},
    )


class CardCompanySetting(db.Model):
    """Card issuer settlement terms: fee percentage and days until deposit."""
    __tablename__ = "card_company_settings"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_card_company_settings_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    fee_rate = db.Column(db.Float, nullable=False, default=2.0)
    deposit_days = db.Column(db.Integer, nullable=False, default=3)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "fee_rate": self.fee_rate,
            "deposit_days": self.deposit_days,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class ProductCategory(db.Model):
    __tablename__ = "product_categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_product_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
