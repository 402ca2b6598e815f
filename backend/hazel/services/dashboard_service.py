# Overview: Service-layer operations for the dashboard; encapsulates business logic and database work.

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Sale
from ..periods import month_date_range
from ..validation import PAYMENT_METHODS, ValidationError
from hazel.time_utils import local_today

MAX_RECENT_LIMIT = 100


def _summarize(start: date, end: date) -> dict:
    summary = {"total_amount": 0, "sales_count": 0}
    for method in PAYMENT_METHODS:
        summary[f"{method}_amount"] = 0
    summary["pending_count"] = 0
    summary["pending_amount"] = 0

    rows = db.session.query(Sale.amount, Sale.payment_method, Sale.deposit_status).filter(
        Sale.date >= start,
        Sale.date <= end,
    ).all()

    for amount, payment_method, deposit_status in rows:
        amount = amount or 0
        summary["total_amount"] += amount
        summary["sales_count"] += 1
        key = f"{payment_method}_amount"
        if key in summary:
            summary[key] += amount
        if deposit_status == "pending":
            summary["pending_count"] += 1
            summary["pending_amount"] += amount
    return summary


def today_summary(today: date | None = None) -> dict:
    today = today or local_today()
    summary = _summarize(today, today)
    summary["date"] = today.isoformat()
    return summary


def month_summary(month: str | None = None) -> dict:
    start, end = month_date_range(month)
    summary = _summarize(start, end)
    summary["month"] = f"{start.year:04d}-{start.month:02d}"
    return summary


def recent_sales(limit: int = 10) -> list[dict]:
    if limit < 1 or limit > MAX_RECENT_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_RECENT_LIMIT}")
    sales = db.session.query(Sale).options(joinedload(Sale.customer)).order_by(
        Sale.date.desc(), Sale.created_at.desc(), Sale.id.desc()
    ).limit(limit).all()
    return [sale.to_dict() for sale in sales]
