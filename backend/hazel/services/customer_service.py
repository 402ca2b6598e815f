# Overview: Service-layer operations for customers; encapsulates business logic and database work.

"""
Customer Service

Customers are identified by phone number. Purchase statistics are derived
from the sales table on every read, so they can never drift from the sales
that produced them:

- list_customers() loads all customers, then ONE query for the sales of those
  customers, grouped in memory (no per-customer queries).
- find_or_create_customer() is an atomic upsert keyed on the unique phone
  column, so concurrent identical submissions converge on a single row.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, Reservation, Sale
from ..validation import (
    CUSTOMER_GRADES,
    GENDERS,
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_customer,
    like_escape,
    validate_payload,
    validate_search_query,
)
from hazel.time_utils import to_iso_date

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
DUPLICATE_PHONE_MESSAGE = "phone number is already registered"

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "grade", "gender", "note"},
    required_on_create={"name", "phone"},
    choices={"grade": CUSTOMER_GRADES, "gender": GENDERS},
)


def normalize_phone(phone: str | None) -> str | None:
    """
    Canonical storage form for phone numbers.

    10-11 digit numbers (with or without separators) become hyphenated
    (010-1234-5678, 011-123-4567, 02-1234-5678); anything else is stored trimmed.
    """
    if phone is None:
        return None
    raw = str(phone).strip()
    if not raw:
        return None
    if not re.fullmatch(r"[\d\s\-]+", raw):
        return raw

    digits = re.sub(r"\D", "", raw)
    if len(digits) == 11:
        return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"
    if len(digits) == 10:
        if digits.startswith("02"):
            return f"{digits[:2]}-{digits[2:6]}-{digits[6:]}"
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    return raw


def _empty_stats() -> dict:
    return {
        "total_purchase_count": 0,
        "total_purchase_amount": 0,
        "first_purchase_date": None,
        "last_purchase_date": None,
    }


def purchase_stats_for(customer_ids: list[int]) -> dict[int, dict]:
    """Derived purchase statistics for many customers using a single sales query."""
    stats = {customer_id: _empty_stats() for customer_id in customer_ids}
    if not customer_ids:
        return stats

    rows = db.session.query(Sale.customer_id, Sale.amount, Sale.date).filter(
        Sale.customer_id.in_(customer_ids)
    ).all()

    for customer_id, amount, sale_date in rows:
        entry = stats[customer_id]
        entry["total_purchase_count"] += 1
        entry["total_purchase_amount"] += amount or 0
        if entry["first_purchase_date"] is None or sale_date < entry["first_purchase_date"]:
            entry["first_purchase_date"] = sale_date
        if entry["last_purchase_date"] is None or sale_date > entry["last_purchase_date"]:
            entry["last_purchase_date"] = sale_date

    for entry in stats.values():
        entry["first_purchase_date"] = to_iso_date(entry["first_purchase_date"])
        entry["last_purchase_date"] = to_iso_date(entry["last_purchase_date"])
    return stats


def _get_or_404(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def list_customers() -> list[dict]:
    customers = db.session.query(Customer).order_by(Customer.created_at.desc(), Customer.id.desc()).all()
    stats = purchase_stats_for([c.id for c in customers])
    result = [c.to_dict(stats[c.id]) for c in customers]
    # Stable sort keeps newest-first among equal totals
    result.sort(key=lambda row: row["total_purchase_amount"], reverse=True)
    return result


def get_customer(customer_id: int) -> dict:
    customer = _get_or_404(customer_id)
    return customer.to_dict(purchase_stats_for([customer.id])[customer.id])


def _clean_patch(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=partial)
    if "phone" in patch:
        patch["phone"] = normalize_phone(patch["phone"])
    enforce_rules_customer(patch)
    return patch


def create_customer(payload: dict) -> dict:
    patch = _clean_patch(payload, partial=False)
    if check_phone_duplicate(patch["phone"]):
        raise ConflictError(DUPLICATE_PHONE_MESSAGE)

    customer = Customer(**patch)
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same phone
        db.session.rollback()
        raise ConflictError(DUPLICATE_PHONE_MESSAGE)

    logger.info("Customer %s created", customer.id)
    return customer.to_dict(_empty_stats())


def update_customer(customer_id: int, payload: dict) -> dict:
    customer = _get_or_404(customer_id)
    patch = _clean_patch(payload, partial=True)

    if "phone" in patch and patch["phone"] != customer.phone:
        if check_phone_duplicate(patch["phone"], exclude_id=customer.id):
            raise ConflictError(DUPLICATE_PHONE_MESSAGE)

    for key, value in patch.items():
        setattr(customer, key, value)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_PHONE_MESSAGE)

    return customer.to_dict(purchase_stats_for([customer.id])[customer.id])


def update_customer_grade(customer_id: int, grade: str) -> dict:
    if grade not in CUSTOMER_GRADES:
        raise ValidationError(f"grade must be one of: {', '.join(CUSTOMER_GRADES)}")
    customer = _get_or_404(customer_id)
    customer.grade = grade
    db.session.commit()
    return customer.to_dict(purchase_stats_for([customer.id])[customer.id])


def delete_customer(customer_id: int) -> None:
    """
    Hard delete. Linked sales and reservations keep their name/phone snapshot
    and lose the link.

    The explicit UPDATEs mirror ON DELETE SET NULL for SQLite connections
    where foreign key enforcement is off.
    """
    customer = _get_or_404(customer_id)
    db.session.query(Sale).filter(Sale.customer_id == customer.id).update(
        {Sale.customer_id: None}, synchronize_session=False
    )
    db.session.query(Reservation).filter(Reservation.customer_id == customer.id).update(
        {Reservation.customer_id: None}, synchronize_session=False
    )
    db.session.delete(customer)
    db.session.commit()
    logger.info("Customer %s deleted", customer_id)


def _insert_ignoring_duplicate_phone(name: str, phone: str) -> None:
    dialect = db.session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        insert = None

    if insert is not None:
        stmt = insert(Customer).values(name=name, phone=phone, grade="new").on_conflict_do_nothing(
            index_elements=["phone"]
        )
        db.session.execute(stmt)
        return

    # Other backends: savepoint insert, duplicate is the expected race outcome
    try:
        with db.session.begin_nested():
            db.session.add(Customer(name=name, phone=phone, grade="new"))
    except IntegrityError:
        pass


def find_or_create_customer(name: str, phone: str) -> Customer:
    """
    Return the customer with this phone, creating it when absent.

    Atomic on the unique phone column: two identical submissions racing each
    other both end up with the same single row. Does not commit; the caller's
    transaction owns the insert.
    """
    name = (name or "").strip()
    phone = normalize_phone(phone)
    if not name:
        raise ValidationError("customer_name is required")
    if not phone:
        raise ValidationError("customer_phone is required")
    if len(name) > 100:
        raise ValidationError("customer_name exceeds max length 100")
    if len(phone) > 20:
        raise ValidationError("customer_phone exceeds max length 20")

    existing = db.session.query(Customer).filter_by(phone=phone).first()
    if existing:
        return existing

    _insert_ignoring_duplicate_phone(name, phone)
    return db.session.query(Customer).filter_by(phone=phone).one()


def get_customer_sales(customer_id: int) -> list[dict]:
    _get_or_404(customer_id)
    sales = db.session.query(Sale).filter(Sale.customer_id == customer_id).order_by(
        Sale.date.desc(), Sale.created_at.desc()
    ).all()
    return [sale.to_dict() for sale in sales]


def search_customers_by_name(query: str) -> list[dict]:
    query = validate_search_query(query)
    pattern = f"%{like_escape(query)}%"
    customers = db.session.query(Customer).filter(Customer.name.ilike(pattern, escape="!")).order_by(
        Customer.name.asc()
    ).limit(SEARCH_LIMIT).all()
    return [{"id": c.id, "name": c.name, "phone": c.phone, "grade": c.grade} for c in customers]


def check_phone_duplicate(phone: str | None, exclude_id: int | None = None) -> Customer | None:
    """Existing customer using this phone (raw, normalized, or digits-only), else None."""
    if not phone or len(phone.strip()) < 10:
        return None

    raw = phone.strip()
    candidates = {raw, re.sub(r"\D", "", raw)}
    normalized = normalize_phone(raw)
    if normalized:
        candidates.add(normalized)

    query = db.session.query(Customer).filter(or_(*[Customer.phone == c for c in candidates]))
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    return query.first()
