from __future__ import annotations

from ..extensions import db
from hazel.time_utils import to_utc_z, utcnow


class PhotoCard(db.Model):
    """
    Gallery card grouping up to ten photos of an arrangement.

    photos is an ordered list of {"url", "original_name"}; tags holds tag names.
    updated_at doubles as the pagination cursor, so it is written with
    microsecond precision on the Python side.
    """
    __tablename__ = "photo_cards"
    __table_args__ = (
        db.Index("ix_photo_cards_updated_at", "updated_at"),
        db.Index("ix_photo_cards_sale_id", "sale_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    photos = db.Column(db.JSON, nullable=False, default=list)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags or []),
            "photos": [dict(photo) for photo in (self.photos or [])],
            "sale_id": self.sale_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PhotoTag(db.Model):
    __tablename__ = "photo_tags"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_photo_tags_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    color = db.Column(db.String(7), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "created_at": to_utc_z(self.created_at),
        }
