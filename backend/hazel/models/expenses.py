from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_iso_date, to_utc_z


class Expense(db.Model):
    """Shop expense line. total_amount is always unit_price * quantity (computed server-side)."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False)
    item_name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(30), nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    total_amount = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)
    card_company = db.Column(db.String(50), nullable=True)
    vendor = db.Column(db.String(100), nullable=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "item_name": self.item_name,
            "category": self.category,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "total_amount": self.total_amount,
            "payment_method": self.payment_method,
            "card_company": self.card_company,
            "vendor": self.vendor,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
