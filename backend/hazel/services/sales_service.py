# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sales Service

Customer resolution on create/update:
- an explicit customer_id links that customer
- otherwise a name + phone pair runs the atomic find-or-create on phone
- otherwise the sale stays unlinked (walk-in)

Card sales get settlement defaults from the card company's terms when the
caller leaves them out: fee, expected deposit, expected deposit date, and a
pending deposit status.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Customer, PhotoCard, Reservation, Sale
from ..periods import month_date_range
from ..validation import (
    DEPOSIT_STATUSES,
    PAYMENT_METHODS,
    RESERVATION_CHANNELS,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_sale,
    validate_payload,
)
from . import customer_service, settings_service, storage_service
from .storage_service import SALE_PHOTOS_BUCKET, UploadFile

logger = logging.getLogger(__name__)

MAX_PHOTOS_PER_SALE = 10

SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "date", "product_name", "product_category", "amount", "payment_method",
        "card_company", "fee", "expected_deposit", "expected_deposit_date",
        "deposit_status", "reservation_channel", "customer_id", "customer_name",
        "customer_phone", "reservation_id", "note", "has_review",
    },
    required_on_create={"date", "product_category", "amount", "payment_method"},
    choices={
        "payment_method": PAYMENT_METHODS,
        "deposit_status": DEPOSIT_STATUSES,
        "reservation_channel": RESERVATION_CHANNELS,
    },
)

CUSTOMER_FIELDS = ("customer_id", "customer_name", "customer_phone")


def _get_or_404(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def calculate_card_fee(amount: int, fee_rate: float) -> int:
    """Fee in won, rounded half-up."""
    fee = Decimal(amount) * Decimal(str(fee_rate)) / Decimal(100)
    return int(fee.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _apply_settlement_defaults(fields: dict, *, explicit: set[str]) -> None:
    """
    Fill card settlement fields the caller did not provide.

    `fields` is the full post-change view of the sale; `explicit` names the
    keys the caller set in this request.
    """
    if fields.get("payment_method") != "card":
        if "deposit_status" not in explicit:
            fields["deposit_status"] = "not_applicable"
        return

    if "deposit_status" not in explicit and fields.get("deposit_status") in (None, "not_applicable"):
        fields["deposit_status"] = "pending"

    terms = settings_service.resolve_card_company(fields.get("card_company"))
    if not terms:
        return

    amount = fields.get("amount") or 0
    if "fee" not in explicit and (fields.get("fee") is None or "amount" in explicit or "card_company" in explicit):
        fields["fee"] = calculate_card_fee(amount, terms["fee_rate"])
    if "expected_deposit" not in explicit and (
        fields.get("expected_deposit") is None or "amount" in explicit or "fee" in explicit or "card_company" in explicit
    ):
        fields["expected_deposit"] = amount - (fields.get("fee") or 0)
    if "expected_deposit_date" not in explicit and fields.get("date") is not None and (
        fields.get("expected_deposit_date") is None or "date" in explicit or "card_company" in explicit
    ):
        fields["expected_deposit_date"] = fields["date"] + timedelta(days=int(terms["deposit_days"]))


def _resolve_customer(fields: dict, patch: dict) -> None:
    """Apply the customer resolution rules to `fields` when the patch touches customer data."""
    if not any(key in patch for key in CUSTOMER_FIELDS):
        return

    # Snapshot phones are stored in canonical form, like Customer.phone
    if fields.get("customer_phone"):
        fields["customer_phone"] = customer_service.normalize_phone(fields["customer_phone"])

    customer_id = patch.get("customer_id")
    if customer_id is not None:
        customer = db.session.get(Customer, customer_id)
        if not customer:
            raise ValidationError("customer_id does not match a customer")
        fields["customer_id"] = customer.id
        fields["customer_name"] = patch.get("customer_name") or customer.name
        fields["customer_phone"] = fields["customer_phone"] if patch.get("customer_phone") else customer.phone
        return

    name = fields.get("customer_name")
    phone = fields.get("customer_phone")
    if name and phone:
        customer = customer_service.find_or_create_customer(name, phone)
        fields["customer_id"] = customer.id
        fields["customer_phone"] = customer.phone
    else:
        fields["customer_id"] = None


def _check_reservation(reservation_id: int | None) -> None:
    if reservation_id is not None and not db.session.get(Reservation, reservation_id):
        raise ValidationError("reservation_id does not match a reservation")


def list_sales(month: str | None = None) -> list[dict]:
    start, end = month_date_range(month)
    sales = db.session.query(Sale).options(joinedload(Sale.customer)).filter(
        Sale.date >= start,
        Sale.date <= end,
    ).order_by(Sale.date.desc(), Sale.created_at.desc(), Sale.id.desc()).all()
    return [sale.to_dict() for sale in sales]


def get_sale(sale_id: int) -> dict:
    return _get_or_404(sale_id).to_dict()


def build_sale(payload: dict) -> Sale:
    """
    Validate, resolve the customer, apply settlement defaults, and add the Sale to the session.

    Flushes but does not commit, so a caller can fold the insert into a larger
    transaction (reservation conversion).
    """
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
    enforce_rules_sale(patch)

    fields = dict(patch)
    fields.setdefault("product_name", fields["product_category"])
    fields.setdefault("reservation_channel", "other")
    fields.setdefault("has_review", False)

    _resolve_customer(fields, patch)
    _check_reservation(fields.get("reservation_id"))
    _apply_settlement_defaults(fields, explicit=set(patch))

    sale = Sale(**fields)
    sale.photos = []
    db.session.add(sale)
    db.session.flush()
    return sale


def create_sale(payload: dict) -> dict:
    try:
        sale = build_sale(payload)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Sale %s recorded (%s won, %s)", sale.id, sale.amount, sale.payment_method)
    return sale.to_dict()


def update_sale(sale_id: int, payload: dict) -> dict:
    sale = _get_or_404(sale_id)
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=True)
    enforce_rules_sale(patch)

    fields = {column.key: getattr(sale, column.key) for column in Sale.__table__.columns}
    fields.update(patch)
    if "product_category" in patch and "product_name" not in patch:
        fields["product_name"] = patch["product_category"]

    try:
        _resolve_customer(fields, patch)
        if "reservation_id" in patch:
            _check_reservation(patch["reservation_id"])
        _apply_settlement_defaults(fields, explicit=set(patch))

        for key, value in fields.items():
            if key in ("id", "created_at", "updated_at", "photos"):
                continue
            if getattr(sale, key) != value:
                setattr(sale, key, value)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return sale.to_dict()


def set_review(sale_id: int, has_review: bool) -> dict:
    return update_sale(sale_id, {"has_review": bool(has_review)})


def delete_sale(sale_id: int) -> None:
    sale = _get_or_404(sale_id)
    photo_urls = list(sale.photos or [])

    # Detach dependents explicitly (SQLite may run without FK enforcement)
    db.session.query(Reservation).filter(Reservation.sale_id == sale.id).update(
        {Reservation.sale_id: None}, synchronize_session=False
    )
    db.session.query(PhotoCard).filter(PhotoCard.sale_id == sale.id).update(
        {PhotoCard.sale_id: None}, synchronize_session=False
    )
    db.session.delete(sale)
    db.session.commit()

    if photo_urls:
        storage_service.remove_urls(SALE_PHOTOS_BUCKET, photo_urls)
    logger.info("Sale %s deleted", sale_id)


def upload_sale_photos(sale_id: int, files: list[UploadFile]) -> dict:
    sale = _get_or_404(sale_id)
    if not files:
        raise ValidationError("No files uploaded")

    existing = list(sale.photos or [])
    if len(existing) + len(files) > MAX_PHOTOS_PER_SALE:
        raise ValidationError(f"A sale can hold at most {MAX_PHOTOS_PER_SALE} photos")

    # Validate everything before writing anything
    for upload_file in files:
        storage_service.validate_image(upload_file)

    uploaded = [storage_service.upload_image(SALE_PHOTOS_BUCKET, sale.id, f) for f in files]
    sale.photos = existing + uploaded
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        storage_service.remove_urls(SALE_PHOTOS_BUCKET, uploaded)
        raise
    return sale.to_dict()


def delete_sale_photo(sale_id: int, photo_url: str) -> dict:
    sale = _get_or_404(sale_id)
    photos = list(sale.photos or [])
    if photo_url not in photos:
        raise NotFoundError("Photo not found on this sale")

    sale.photos = [url for url in photos if url != photo_url]
    db.session.commit()
    storage_service.remove_urls(SALE_PHOTOS_BUCKET, [photo_url])
    return sale.to_dict()
