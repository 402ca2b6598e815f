# Overview: Service-layer operations for statistics; encapsulates business logic and database work.

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from ..extensions import db
from ..models import Expense, Sale
from ..periods import month_date_range, month_key, recent_months
from ..settings_catalog import CHANNEL_LABELS, EXPENSE_LABELS, PAYMENT_LABELS
from ..validation import ValidationError
from . import settings_service

MAX_TREND_MONTHS = 24


def percentage(amount: int, total: int) -> int:
    """Whole-number share of total, rounded half-up; 0 when there is no total."""
    if total <= 0:
        return 0
    return (amount * 200 + total) // (2 * total)


def _bucketed(rows, *, key_name: str, labels: dict[str, str] | None = None, include_count: bool = True) -> list[dict]:
    total = sum(int(row.amount or 0) for row in rows)
    buckets = []
    for row in rows:
        amount = int(row.amount or 0)
        bucket = {key_name: row.key}
        if labels is not None:
            bucket["label"] = labels.get(row.key, row.key)
        if include_count:
            bucket["count"] = int(row.count or 0)
        bucket["amount"] = amount
        bucket["percentage"] = percentage(amount, total)
        buckets.append(bucket)
    buckets.sort(key=lambda b: b["amount"], reverse=True)
    return buckets


def _sales_grouped_by(column, month: str | None):
    start, end = month_date_range(month)
    return db.session.query(
        column.label("key"),
        func.count(Sale.id).label("count"),
        func.coalesce(func.sum(Sale.amount), 0).label("amount"),
    ).filter(
        Sale.date >= start,
        Sale.date <= end,
    ).group_by(column).all()


def category_stats(month: str | None = None) -> list[dict]:
    return _bucketed(_sales_grouped_by(Sale.product_category, month), key_name="name")


def payment_method_stats(month: str | None = None) -> list[dict]:
    labels = dict(PAYMENT_LABELS)
    labels.update(settings_service.option_labels("payment_methods"))
    return _bucketed(_sales_grouped_by(Sale.payment_method, month), key_name="method", labels=labels)


def channel_stats(month: str | None = None) -> list[dict]:
    return _bucketed(_sales_grouped_by(Sale.reservation_channel, month), key_name="channel", labels=CHANNEL_LABELS)


def expense_category_stats(month: str | None = None) -> list[dict]:
    start, end = month_date_range(month)
    rows = db.session.query(
        Expense.category.label("key"),
        func.count(Expense.id).label("count"),
        func.coalesce(func.sum(Expense.total_amount), 0).label("amount"),
    ).filter(
        Expense.date >= start,
        Expense.date <= end,
    ).group_by(Expense.category).all()

    labels = dict(EXPENSE_LABELS)
    labels.update(settings_service.option_labels("expense_categories"))
    return _bucketed(rows, key_name="category", labels=labels, include_count=False)


def customer_stats(month: str | None = None) -> dict:
    """
    New vs returning customers by phone for the month.

    Returning = any sale with the same phone before the month start, checked
    with a single IN query over all of the month's phones.
    """
    start, end = month_date_range(month)
    phones = {
        phone for (phone,) in db.session.query(Sale.customer_phone).filter(
            Sale.date >= start,
            Sale.date <= end,
            Sale.customer_phone.isnot(None),
            Sale.customer_phone != "",
        ).distinct().all()
    }

    total = len(phones)
    if total == 0:
        return {"new_customers": 0, "returning_customers": 0, "total_customers": 0}

    returning = {
        phone for (phone,) in db.session.query(Sale.customer_phone).filter(
            Sale.customer_phone.in_(phones),
            Sale.date < start,
        ).distinct().all()
    }

    return {
        "new_customers": total - len(returning),
        "returning_customers": len(returning),
        "total_customers": total,
    }


def monthly_sales_trend(months: int = 6, *, until: date | None = None) -> list[dict]:
    """Totals for the last `months` calendar months (oldest first, empty months included), one query."""
    if months < 1 or months > MAX_TREND_MONTHS:
        raise ValidationError(f"months must be between 1 and {MAX_TREND_MONTHS}")

    window = recent_months(months, until=until)
    first_year, first_month = window[0]
    last_year, last_month = window[-1]
    start, _ = month_date_range(f"{first_year:04d}-{first_month:02d}")
    _, end = month_date_range(f"{last_year:04d}-{last_month:02d}")

    totals: dict[str, dict] = {}
    for sale_date, amount in db.session.query(Sale.date, Sale.amount).filter(
        Sale.date >= start,
        Sale.date <= end,
    ).all():
        entry = totals.setdefault(month_key(sale_date), {"amount": 0, "count": 0})
        entry["amount"] += amount or 0
        entry["count"] += 1

    trend = []
    for year, month_num in window:
        key = f"{year:04d}-{month_num:02d}"
        entry = totals.get(key, {"amount": 0, "count": 0})
        trend.append({
            "month": key,
            "label": f"{month_num}월",
            "total_amount": entry["amount"],
            "sales_count": entry["count"],
        })
    return trend


def daily_sales_trend(month: str | None = None) -> list[dict]:
    """Per-day totals for days that have sales, in date order."""
    start, end = month_date_range(month)
    rows = db.session.query(
        Sale.date.label("day"),
        func.count(Sale.id).label("count"),
        func.coalesce(func.sum(Sale.amount), 0).label("amount"),
    ).filter(
        Sale.date >= start,
        Sale.date <= end,
    ).group_by(Sale.date).order_by(Sale.date.asc()).all()

    return [
        {
            "date": row.day.isoformat(),
            "label": f"{row.day.day}일",
            "total_amount": int(row.amount or 0),
            "sales_count": int(row.count or 0),
        }
        for row in rows
    ]
