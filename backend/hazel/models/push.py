from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_utc_z


class PushSubscription(db.Model):
    """
    Browser push endpoint registered by an operator.

    Endpoints are unique; re-subscribing the same endpoint updates keys and
    reactivates it. Only a 404/410 from the push service deactivates a row.
    """
    __tablename__ = "push_subscriptions"
    __table_args__ = (
        db.UniqueConstraint("endpoint", name="uq_push_subscriptions_endpoint"),
        db.Index("ix_push_subscriptions_user_active", "user_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    endpoint = db.Column(db.String(1024), nullable=False)
    p256dh = db.Column(db.String(255), nullable=False)
    auth = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def subscription_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "endpoint": self.endpoint,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
