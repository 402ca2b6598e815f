from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_utc_z


class Customer(db.Model):
    """
    Shop customers, keyed by phone number.

    Purchase totals are never stored here: count, amount, and first/last
    purchase dates are derived from linked sales when customers are read.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("phone", name="uq_customers_phone"),
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    grade = db.Column(db.String(16), nullable=False, default="new")
    gender = db.Column(db.String(8), nullable=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self, stats: dict | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "grade": self.grade,
            "gender": self.gender,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if stats is not None:
            data.update(stats)
        return data
