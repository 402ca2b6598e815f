# Overview: Service-layer operations for gallery tags; encapsulates business logic and database work.

from __future__ import annotations

import random

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import PhotoCard, PhotoTag
from ..validation import ConflictError, NotFoundError, ValidationError, validate_color
from .photo_card_service import MAX_TAG_LENGTH, tag_filter

TAG_COLORS = (
    "#f5f5f5", "#ec4899", "#ef4444", "#eab308", "#a855f7",
    "#6366f1", "#14b8a6", "#f97316", "#22c55e", "#3b82f6",
)


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    name = name.strip()
    if len(name) > MAX_TAG_LENGTH:
        raise ValidationError(f"name exceeds max length {MAX_TAG_LENGTH}")
    return name


def _cards_with_tag(name: str) -> list[PhotoCard]:
    return [card for card in db.session.query(PhotoCard).filter(tag_filter(name)).all() if name in (card.tags or [])]


def list_photo_tags() -> list[dict]:
    return [tag.to_dict() for tag in db.session.query(PhotoTag).order_by(PhotoTag.name.asc()).all()]


def create_photo_tag(name, color: str | None = None) -> dict:
    name = _clean_name(name)
    color = validate_color(color) or random.choice(TAG_COLORS)

    if db.session.query(PhotoTag).filter_by(name=name).first():
        raise ConflictError("Tag already exists")

    tag = PhotoTag(name=name, color=color)
    db.session.add(tag)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Tag already exists")
    return tag.to_dict()


def update_photo_tag(tag_id: int, name=None, color: str | None = None) -> dict:
    """Rename and/or recolour. A rename is carried onto every card using the old name."""
    tag = db.session.get(PhotoTag, tag_id)
    if not tag:
        raise NotFoundError("Tag not found")

    if name is not None:
        new_name = _clean_name(name)
        if new_name != tag.name:
            if db.session.query(PhotoTag).filter(PhotoTag.name == new_name, PhotoTag.id != tag.id).first():
                raise ConflictError("Tag already exists")
            for card in _cards_with_tag(tag.name):
                card.tags = [new_name if t == tag.name else t for t in card.tags if t != new_name]
            tag.name = new_name
    if color is not None:
        tag.color = validate_color(color)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Tag already exists")
    return tag.to_dict()


def delete_photo_tag(tag_id: int) -> int:
    """Delete the tag and strip it from every card. Returns the number of cards touched."""
    tag = db.session.get(PhotoTag, tag_id)
    if not tag:
        raise NotFoundError("Tag not found")

    cards = _cards_with_tag(tag.name)
    for card in cards:
        card.tags = [t for t in card.tags if t != tag.name]

    db.session.delete(tag)
    db.session.commit()
    return len(cards)
