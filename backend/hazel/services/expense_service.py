# Overview: Service-layer operations for expenses; encapsulates business logic and database work.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Expense
from ..periods import month_date_range
from ..validation import (
    PAYMENT_METHODS,
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_expense,
    validate_payload,
)

logger = logging.getLogger(__name__)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={
        "date", "item_name", "category", "unit_price", "quantity",
        "payment_method", "card_company", "vendor", "note",
    },
    required_on_create={"date", "item_name", "category", "unit_price", "payment_method"},
    choices={"payment_method": PAYMENT_METHODS},
)


def _get_or_404(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")
    return expense


def list_expenses(month: str | None = None) -> list[dict]:
    start, end = month_date_range(month)
    expenses = db.session.query(Expense).filter(
        Expense.date >= start,
        Expense.date <= end,
    ).order_by(Expense.date.desc(), Expense.id.desc()).all()
    return [e.to_dict() for e in expenses]


def get_expense(expense_id: int) -> dict:
    return _get_or_404(expense_id).to_dict()


def create_expense(payload: dict) -> dict:
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
    patch.setdefault("quantity", 1)
    enforce_rules_expense(patch)

    # total_amount is never client-supplied
    expense = Expense(**patch, total_amount=patch["unit_price"] * patch["quantity"])
    db.session.add(expense)
    db.session.commit()
    logger.info("Expense %s recorded (%s won)", expense.id, expense.total_amount)
    return expense.to_dict()


def update_expense(expense_id: int, payload: dict) -> dict:
    expense = _get_or_404(expense_id)
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
    enforce_rules_expense(patch)

    for key, value in patch.items():
        setattr(expense, key, value)
    expense.total_amount = expense.unit_price * expense.quantity

    db.session.commit()
    return expense.to_dict()


def delete_expense(expense_id: int) -> None:
    expense = _get_or_404(expense_id)
    db.session.delete(expense)
    db.session.commit()
