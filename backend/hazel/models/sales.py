from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_iso_date, to_utc_z, utcnow


class Sale(db.Model):
    """
    A recorded sale.

    customer_name/customer_phone are a snapshot taken at entry time; when the
    sale is linked to a customer, reads prefer the live customer values.
    Card sales carry settlement fields (fee, expected deposit, deposit status).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_date", "date"),
        db.Index("ix_sales_customer_id", "customer_id"),
        db.Index("ix_sales_payment_deposit", "payment_method", "deposit_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False)
    product_name = db.Column(db.String(100), nullable=False)
    product_category = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)
    card_company = db.Column(db.String(50), nullable=True)
    fee = db.Column(db.Integer, nullable=True)
    expected_deposit = db.Column(db.Integer, nullable=True)
    expected_deposit_date = db.Column(db.Date, nullable=True)
    deposit_status = db.Column(db.String(16), nullable=False, default="not_applicable")
    deposited_at = db.Column(db.DateTime(timezone=True), nullable=True)

    reservation_channel = db.Column(db.String(16), nullable=False, default="other")

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_name = db.Column(db.String(100), nullable=True)
    customer_phone = db.Column(db.String(20), nullable=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True)

    note = db.Column(db.Text, nullable=True)
    has_review = db.Column(db.Boolean, nullable=False, default=False)
    photos = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True, passive_deletes=True))

    def to_dict(self) -> dict:
        # Live customer data wins over the entry-time snapshot
        customer_name = self.customer_name
        customer_phone = self.customer_phone
        if self.customer is not None:
            customer_name = self.customer.name
            customer_phone = self.customer.phone

        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "product_name": self.product_name,
            "product_category": self.product_category,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "card_company": self.card_company,
            "fee": self.fee,
            "expected_deposit": self.expected_deposit,
            "expected_deposit_date": to_iso_date(self.expected_deposit_date),
            "deposit_status": self.deposit_status,
            "deposited_at": to_utc_z(self.deposited_at) if self.deposited_at else None,
            "reservation_channel": self.reservation_channel,
            "customer_id": self.customer_id,
            "customer_name": customer_name,
            "customer_phone": customer_phone,
            "reservation_id": self.reservation_id,
            "note": self.note,
            "has_review": self.has_review,
            "photos": list(self.photos or []),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
