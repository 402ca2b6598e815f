# Overview: Service-layer operations for card deposits; encapsulates business logic and database work.

"""
Deposit Service

Tracks card-sale settlement: a card sale is `pending` until the acquirer pays
out, then `completed` with deposited_at stamped. Only sales with
payment_method == "card" are deposit-tracked.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Sale
from ..periods import month_date_range
from ..validation import NotFoundError, ValidationError, validate_ids
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

ALL = "all"
FILTERABLE_STATUSES = ("pending", "completed")


def _card_sales_query(month: str | None):
    start, end = month_date_range(month)
    return db.session.query(Sale).filter(
        Sale.payment_method == "card",
        Sale.date >= start,
        Sale.date <= end,
    )


def _get_card_sale(sale_id: int) -> Sale:
    sale = lock_for_update(db.session.query(Sale).filter(Sale.id == sale_id)).first()
    if not sale or sale.payment_method != "card":
        raise NotFoundError("Card sale not found")
    return sale


def deposit_amount(sale: Sale) -> int:
    """What the acquirer pays out: expected_deposit when set (non-zero), else the sale amount."""
    return sale.expected_deposit or sale.amount or 0


def list_deposits(month: str | None = None, status: str = ALL, card_company: str = ALL) -> list[dict]:
    query = _card_sales_query(month)

    status = status or ALL
    if status != ALL:
        if status not in FILTERABLE_STATUSES:
            raise ValidationError(f"status must be one of: all, {', '.join(FILTERABLE_STATUSES)}")
        query = query.filter(Sale.deposit_status == status)

    card_company = card_company or ALL
    if card_company != ALL:
        query = query.filter(Sale.card_company == card_company)

    sales = query.order_by(Sale.date.desc(), Sale.id.desc()).all()
    return [sale.to_dict() for sale in sales]


def list_pending_deposits(month: str | None = None) -> list[dict]:
    return list_deposits(month, status="pending")


def list_completed_deposits(month: str | None = None) -> list[dict]:
    return list_deposits(month, status="completed")


def confirm_deposit(sale_id: int) -> dict:
    sale = _get_card_sale(sale_id)
    sale.deposit_status = "completed"
    sale.deposited_at = utcnow()
    db.session.commit()
    return sale.to_dict()


def confirm_multiple_deposits(ids) -> dict:
    """Mark up to 100 card sales as deposited in one statement."""
    sale_ids = validate_ids(ids)

    def _confirm():
        count = db.session.query(Sale).filter(
            Sale.id.in_(sale_ids),
            Sale.payment_method == "card",
        ).update(
            {Sale.deposit_status: "completed", Sale.deposited_at: utcnow()},
            synchronize_session=False,
        )
        db.session.commit()
        return count

    updated = run_with_retry(_confirm)
    logger.info("Confirmed %s deposit(s)", updated)
    return {"success": True, "updated": updated}


def revert_deposit(sale_id: int) -> dict:
    sale = _get_card_sale(sale_id)
    sale.deposit_status = "pending"
    sale.deposited_at = None
    db.session.commit()
    return sale.to_dict()


def deposits_summary(month: str | None = None) -> dict:
    summary = {
        "pending_count": 0,
        "pending_amount": 0,
        "completed_count": 0,
        "completed_amount": 0,
    }
    sales = _card_sales_query(month).filter(Sale.deposit_status.in_(FILTERABLE_STATUSES)).all()
    for sale in sales:
        summary[f"{sale.deposit_status}_count"] += 1
        summary[f"{sale.deposit_status}_amount"] += deposit_amount(sale)
    return summary
