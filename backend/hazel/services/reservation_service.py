# Overview: Service-layer operations for reservations; encapsulates business logic and database work.

"""
Reservation Service

Lifecycle: pending -> confirmed -> completed | cancelled.

convert_reservation_to_sale() records the Sale and marks the reservation
completed inside ONE transaction: either both rows change or neither does,
so a failure can never leave a sale without its reservation link. A
reservation that is already completed or cancelled cannot be converted, which
also makes a repeated conversion request harmless.
"""

from __future__ import annotations

import logging

from sqlalchemy import case

from ..extensions import db
from ..models import Customer, Reservation, Sale
from ..periods import month_date_range
from ..validation import (
    RESERVATION_STATUSES,
    ModelValidationPolicy,
    NotFoundError,
    StateError,
    ValidationError,
    enforce_rules_reservation,
    validate_payload,
)
from . import customer_service, sales_service
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("completed", "cancelled")

RESERVATION_POLICY = ModelValidationPolicy(
    writable_fields={
        "date", "time", "customer_id", "customer_name", "customer_phone", "title",
        "description", "estimated_amount", "status", "reminder_at", "reminder_date",
    },
    required_on_create={"date", "customer_name", "title"},
    choices={"status": RESERVATION_STATUSES},
)


class ReservationStateError(StateError):
    """Raised when a reservation cannot make the requested transition."""
    pass


def _get_or_404(reservation_id: int) -> Reservation:
    reservation = db.session.get(Reservation, reservation_id)
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def _link_customer(reservation_fields: dict, patch: dict) -> None:
    if patch.get("customer_id") is not None:
        return
    if not any(key in patch for key in ("customer_name", "customer_phone")):
        return
    name = reservation_fields.get("customer_name")
    phone = reservation_fields.get("customer_phone")
    if name and phone:
        customer = customer_service.find_or_create_customer(name, phone)
        reservation_fields["customer_id"] = customer.id
        reservation_fields["customer_phone"] = customer.phone


def list_reservations(month: str | None = None) -> list[dict]:
    """Month's reservations by date, then time with untimed entries last."""
    start, end = month_date_range(month)
    reservations = db.session.query(Reservation).filter(
        Reservation.date >= start,
        Reservation.date <= end,
    ).order_by(
        Reservation.date.asc(),
        case((Reservation.time.is_(None), 1), else_=0),
        Reservation.time.asc(),
        Reservation.id.asc(),
    ).all()
    return [r.to_dict() for r in reservations]


def get_reservation(reservation_id: int) -> dict:
    return _get_or_404(reservation_id).to_dict()


def create_reservation(payload: dict) -> dict:
    patch = validate_payload(model=Reservation, payload=payload, policy=RESERVATION_POLICY, partial=False)
    enforce_rules_reservation(patch)
    if patch.get("status") == "completed":
        raise ValidationError("A reservation is completed by converting it to a sale")

    fields = dict(patch)
    fields.setdefault("status", "pending")
    fields.setdefault("estimated_amount", 0)
    if fields.get("customer_id") is not None and not db.session.get(Customer, fields["customer_id"]):
        raise ValidationError("customer_id does not match a customer")

    try:
        _link_customer(fields, patch)
        reservation = Reservation(**fields)
        db.session.add(reservation)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return reservation.to_dict()


def update_reservation(reservation_id: int, payload: dict) -> dict:
    reservation = _get_or_404(reservation_id)
    patch = validate_payload(model=Reservation, payload=payload, policy=RESERVATION_POLICY, partial=True)
    enforce_rules_reservation(patch)

    new_status = patch.get("status")
    if new_status is not None and new_status != reservation.status:
        if reservation.status in TERMINAL_STATUSES:
            raise ReservationStateError(f"Reservation is already {reservation.status}")
        if new_status == "completed":
            raise ReservationStateError("A reservation is completed by converting it to a sale")

    fields = {key: getattr(reservation, key) for key in ("customer_name", "customer_phone")}
    fields.update(patch)
    try:
        _link_customer(fields, patch)
        for key, value in fields.items():
            setattr(reservation, key, value)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return reservation.to_dict()


def delete_reservation(reservation_id: int) -> None:
    reservation = _get_or_404(reservation_id)
    # Sales recorded from this reservation stay; they just lose the back-reference
    db.session.query(Sale).filter(Sale.reservation_id == reservation.id).update(
        {Sale.reservation_id: None}, synchronize_session=False
    )
    db.session.delete(reservation)
    db.session.commit()


def convert_reservation_to_sale(reservation_id: int, sale_payload: dict | None = None) -> dict:
    """
    Record a sale for the reservation and complete it atomically.

    The sale defaults to the reservation's customer, date, and estimated
    amount; anything in `sale_payload` overrides those. Returns
    {"reservation": ..., "sale": ...}.
    """
    reservation = lock_for_update(
        db.session.query(Reservation).filter(Reservation.id == reservation_id)
    ).first()
    if not reservation:
        raise NotFoundError("Reservation not found")
    if reservation.status in TERMINAL_STATUSES:
        raise ReservationStateError(f"Reservation is already {reservation.status}")

    payload = {
        "date": reservation.date.isoformat(),
        "amount": reservation.estimated_amount,
        "customer_name": reservation.customer_name,
        "customer_phone": reservation.customer_phone,
    }
    if reservation.customer_id is not None:
        payload["customer_id"] = reservation.customer_id
    payload.update(sale_payload or {})
    payload["reservation_id"] = reservation.id

    try:
        sale = sales_service.build_sale(payload)
        reservation.status = "completed"
        reservation.sale_id = sale.id
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Reservation %s converted to sale %s", reservation.id, sale.id)
    return {"reservation": reservation.to_dict(), "sale": sale.to_dict()}
