from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_iso_date, to_utc_z


class Reservation(db.Model):
    """
    Booked order for a future date.

    Lifecycle: pending -> confirmed -> completed (via conversion to a sale),
    or cancelled. completed and cancelled are terminal.
    """
    __tablename__ = "reservations"
    __table_args__ = (
        db.Index("ix_reservations_date", "date"),
        db.Index("ix_reservations_reminder_date", "reminder_date"),
        db.Index("ix_reservations_reminder_at", "reminder_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(10), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_name = db.Column(db.String(100), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    estimated_amount = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="pending")

    sale_id = db.Column(
        db.Integer,
        db.ForeignKey("sales.id", ondelete="SET NULL", use_alter=True, name="fk_reservations_sale_id"),
        nullable=True,
    )

    # Exact-time reminder and day-level advance reminder
    reminder_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reminder_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "time": self.time,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "title": self.title,
            "description": self.description,
            "estimated_amount": self.estimated_amount,
            "status": self.status,
            "sale_id": self.sale_id,
            "reminder_at": to_utc_z(self.reminder_at) if self.reminder_at else None,
            "reminder_date": to_iso_date(self.reminder_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
