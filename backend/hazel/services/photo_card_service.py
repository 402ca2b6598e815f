# Overview: Service-layer operations for gallery photo cards; encapsulates business logic and database work.

"""
Photo Card Service

Cards are listed newest-updated first, PAGE_SIZE at a time. The cursor is the
`updated_at` of the last card on the previous page (full microsecond ISO
string); the next page holds cards strictly older than it.

Tags are stored as a JSON list of names on the card. Filtering by tag matches
the JSON-encoded element (quotes included), so "rose" never matches "roses".
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Text, cast

from ..extensions import db
from ..models import PhotoCard, Sale
from ..validation import NotFoundError, ValidationError, like_escape
from . import storage_service
from .storage_service import PHOTO_CARDS_BUCKET, UploadFile
from hazel.time_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

PAGE_SIZE = 8
MAX_PHOTOS_PER_CARD = 10
MAX_TAGS_PER_CARD = 10
MAX_TAG_LENGTH = 50
SIGNED_URL_TTL = 60


def tag_filter(tag: str):
    """SQL predicate: the card's tags JSON list contains `tag`."""
    return cast(PhotoCard.tags, Text).like(f"%{like_escape(json.dumps(tag))}%", escape="!")


def _get_or_404(card_id: int) -> PhotoCard:
    card = db.session.get(PhotoCard, card_id)
    if not card:
        raise NotFoundError("Photo card not found")
    return card


def _clean_title(title) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required")
    title = title.strip()
    if len(title) > 255:
        raise ValidationError("title exceeds max length 255")
    return title


def _clean_description(description) -> str | None:
    if description is None:
        return None
    description = str(description).strip()
    if len(description) > 1000:
        raise ValidationError("description exceeds max length 1000")
    return description or None


def clean_tags(tags) -> list[str]:
    if tags is None:
        return []
    if not isinstance(tags, list):
        raise ValidationError("tags must be a list")
    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            raise ValidationError("tags must be non-empty strings")
        tag = tag.strip()
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"tag exceeds max length {MAX_TAG_LENGTH}")
        if tag not in cleaned:
            cleaned.append(tag)
    if len(cleaned) > MAX_TAGS_PER_CARD:
        raise ValidationError(f"A card can have at most {MAX_TAGS_PER_CARD} tags")
    return cleaned


def _clean_photos(photos) -> list[dict]:
    if photos is None:
        return []
    if not isinstance(photos, list):
        raise ValidationError("photos must be a list")
    if len(photos) > MAX_PHOTOS_PER_CARD:
        raise ValidationError(f"A card can hold at most {MAX_PHOTOS_PER_CARD} photos")
    cleaned = []
    for photo in photos:
        if not isinstance(photo, dict) or not photo.get("url"):
            raise ValidationError("each photo needs a url")
        name = photo.get("original_name") or photo.get("originalName") or photo["url"].rsplit("/", 1)[-1]
        cleaned.append({"url": str(photo["url"]), "original_name": str(name)[:255]})
    return cleaned


def list_photo_cards(tag: str | None = None, cursor: str | None = None, customer_id: int | None = None) -> dict:
    query = db.session.query(PhotoCard)

    if tag:
        query = query.filter(tag_filter(tag))

    if customer_id is not None:
        query = query.join(Sale, PhotoCard.sale_id == Sale.id).filter(Sale.customer_id == customer_id)

    if cursor:
        try:
            cursor_dt = parse_iso_datetime(cursor)
        except ValueError:
            raise ValidationError("cursor must be an ISO-8601 datetime")
        query = query.filter(PhotoCard.updated_at < cursor_dt)

    # One extra row tells us whether another page exists
    rows = query.order_by(PhotoCard.updated_at.desc(), PhotoCard.id.desc()).limit(PAGE_SIZE + 1).all()
    has_more = len(rows) > PAGE_SIZE
    cards = rows[:PAGE_SIZE]
    next_cursor = cards[-1].updated_at.isoformat() if has_more and cards else None

    return {
        "cards": [card.to_dict() for card in cards],
        "next_cursor": next_cursor,
        "has_more": has_more,
    }


def get_photo_card(card_id: int) -> dict:
    return _get_or_404(card_id).to_dict()


def create_photo_card(payload: dict) -> dict:
    payload = payload or {}
    sale_id = payload.get("sale_id")
    if sale_id is not None and not db.session.get(Sale, sale_id):
        raise ValidationError("sale_id does not match a sale")

    card = PhotoCard(
        title=_clean_title(payload.get("title")),
        description=_clean_description(payload.get("description")),
        tags=clean_tags(payload.get("tags")),
        photos=_clean_photos(payload.get("photos")),
        sale_id=sale_id,
    )
    db.session.add(card)
    db.session.commit()
    return card.to_dict()


def update_photo_card(card_id: int, payload: dict) -> dict:
    card = _get_or_404(card_id)
    payload = payload or {}
    if "title" in payload:
        card.title = _clean_title(payload["title"])
    if "description" in payload:
        card.description = _clean_description(payload["description"])
    if "tags" in payload:
        card.tags = clean_tags(payload["tags"])
    db.session.commit()
    return card.to_dict()


def delete_photo_card(card_id: int) -> list[dict]:
    """Delete the card and its stored files. Returns the photos that were attached."""
    card = _get_or_404(card_id)
    photos = [dict(photo) for photo in (card.photos or [])]
    db.session.delete(card)
    db.session.commit()
    storage_service.remove_urls(PHOTO_CARDS_BUCKET, [photo["url"] for photo in photos])
    return photos


def upload_photos(card_id: int, files: list[UploadFile], original_names: list[str] | None = None) -> list[dict]:
    card = _get_or_404(card_id)
    if not files:
        raise ValidationError("No files uploaded")

    current = list(card.photos or [])
    if len(current) + len(files) > MAX_PHOTOS_PER_CARD:
        raise ValidationError(
            f"A card can hold at most {MAX_PHOTOS_PER_CARD} photos ({len(current)} already attached)"
        )

    for upload_file in files:
        storage_service.validate_image(upload_file)

    original_names = original_names or []
    uploaded = []
    for index, upload_file in enumerate(files):
        url = storage_service.upload_image(PHOTO_CARDS_BUCKET, card.id, upload_file)
        name = original_names[index] if index < len(original_names) and original_names[index] else upload_file.filename
        uploaded.append({"url": url, "original_name": name[:255]})

    card.photos = current + uploaded
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        storage_service.remove_urls(PHOTO_CARDS_BUCKET, [photo["url"] for photo in uploaded])
        raise
    return uploaded


def delete_photo(card_id: int, photo_url: str) -> dict:
    card = _get_or_404(card_id)
    photos = list(card.photos or [])
    remaining = [photo for photo in photos if photo.get("url") != photo_url]
    if len(remaining) == len(photos):
        raise NotFoundError("Photo not found on this card")

    card.photos = remaining
    db.session.commit()
    storage_service.remove_urls(PHOTO_CARDS_BUCKET, [photo_url])
    return card.to_dict()


def reorder_photos(card_id: int, order: list) -> dict:
    """Reorder by URL. `order` must name exactly the card's current photos."""
    card = _get_or_404(card_id)
    if not isinstance(order, list):
        raise ValidationError("photos must be a list")
    urls = [item.get("url") if isinstance(item, dict) else item for item in order]

    by_url = {photo["url"]: photo for photo in (card.photos or [])}
    if sorted(urls) != sorted(by_url):
        raise ValidationError("photos must contain exactly the card's current photos")

    card.photos = [by_url[url] for url in urls]
    db.session.commit()
    return card.to_dict()


def _download_link(photo: dict) -> dict | None:
    key = storage_service.key_from_url(PHOTO_CARDS_BUCKET, photo.get("url", ""))
    if not key:
        return None
    try:
        url = storage_service.signed_url(
            PHOTO_CARDS_BUCKET, key, expires_in=SIGNED_URL_TTL, download_name=photo.get("original_name")
        )
    except storage_service.StorageError:
        logger.warning("Signed URL unavailable for %s", photo.get("url"))
        return None
    return {"url": url, "filename": photo.get("original_name")}


def download_photo(card_id: int, photo_url: str) -> dict:
    card = _get_or_404(card_id)
    photo = next((p for p in (card.photos or []) if p.get("url") == photo_url), None)
    if photo is None:
        raise NotFoundError("Photo not found on this card")
    link = _download_link(photo)
    if link is None:
        raise NotFoundError("Photo file not found")
    return link


def download_all_photos(card_id: int) -> dict:
    card = _get_or_404(card_id)
    links = [_download_link(photo) for photo in (card.photos or [])]
    return {"urls": [link for link in links if link]}


def get_photo_card_by_sale(sale_id: int) -> dict | None:
    card = db.session.query(PhotoCard).filter(PhotoCard.sale_id == sale_id).order_by(PhotoCard.id.asc()).first()
    return card.to_dict() if card else None


def upsert_photo_card_for_sale(
    sale_id: int,
    title,
    photos,
    description=None,
    tags=None,
) -> dict:
    """Create the sale's card, or update it when one exists (one card per sale)."""
    if not db.session.get(Sale, sale_id):
        raise NotFoundError("Sale not found")

    title = _clean_title(title)
    photos = _clean_photos(photos)

    card = db.session.query(PhotoCard).filter(PhotoCard.sale_id == sale_id).order_by(PhotoCard.id.asc()).first()
    if card:
        card.title = title
        card.photos = photos
        if description is not None:
            card.description = _clean_description(description)
        if tags is not None:
            card.tags = clean_tags(tags)
    else:
        card = PhotoCard(
            title=title,
            description=_clean_description(description),
            tags=clean_tags(tags),
            photos=photos,
            sale_id=sale_id,
        )
        db.session.add(card)

    db.session.commit()
    return card.to_dict()
