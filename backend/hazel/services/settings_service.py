# Overview: Service-layer operations for settings; encapsulates business logic and database work.

"""
Settings Service

Option tables (sale categories, payment methods, expense categories, expense
payment methods), card company settlement terms, and product categories.

Reads go through a loader with a fixed precedence: persisted rows win, and
the built-in defaults from settings_catalog are returned only while a table
has no rows at all.
"""

from __future__ import annotations

import logging
import re
import time

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    CardCompanySetting,
    ExpenseCategory,
    ExpensePaymentMethod,
    PaymentMethodOption,
    ProductCategory,
    SaleCategory,
)
from ..settings_catalog import (
    CARD_COMPANY_DEFAULTS,
    DEFAULT_CARD_DEPOSIT_DAYS,
    DEFAULT_CARD_FEE_RATE,
    OPTION_KINDS,
    PRODUCT_CATEGORY_DEFAULTS,
    default_card_companies,
    default_options,
    default_product_categories,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_card_company,
    validate_color,
    validate_payload,
)

logger = logging.getLogger(__name__)

OPTION_MODELS = {
    "sale_categories": SaleCategory,
    "payment_methods": PaymentMethodOption,
    "expense_categories": ExpenseCategory,
    "expense_payment_methods": ExpensePaymentMethod,
}

CARD_COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "fee_rate", "deposit_days", "is_active"},
    required_on_create={"name"},
)

PRODUCT_CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sort_order", "is_active"},
    required_on_create={"name"},
)


def _option_model(kind: str):
    model = OPTION_MODELS.get(kind)
    if model is None:
        raise ValidationError(f"Unknown settings kind: {kind}")
    return model


def slugify_label(label: str, prefix: str = "cat") -> str:
    """Stable value for an option: lowercase snake_case ASCII, or `<prefix>_<millis>` when nothing survives."""
    value = re.sub(r"\s+", "_", label.strip().lower())
    value = re.sub(r"[^a-z0-9_]", "", value)
    return value or f"{prefix}_{int(time.time() * 1000)}"


def _clean_label(label) -> str:
    if not isinstance(label, str) or not label.strip():
        raise ValidationError("label is required")
    label = label.strip()
    if len(label) > 100:
        raise ValidationError("label exceeds max length 100")
    return label


# ---------------------------------------------------------------------------
# Option tables
# ---------------------------------------------------------------------------

def list_options(kind: str) -> list[dict]:
    model = _option_model(kind)
    rows = db.session.query(model).order_by(model.sort_order.asc(), model.id.asc()).all()
    if not rows:
        return default_options(kind)
    return [row.to_dict() for row in rows]


def option_labels(kind: str) -> dict[str, str]:
    """value -> label map honoring the loader precedence."""
    return {option["value"]: option["label"] for option in list_options(kind)}


def create_option(kind: str, label, color: str | None = None) -> dict:
    model = _option_model(kind)
    _defaults, prefix, default_color = OPTION_KINDS[kind]
    label = _clean_label(label)
    color = validate_color(color) or default_color
    value = slugify_label(label, prefix)

    if db.session.query(model).filter_by(value=value).first():
        raise ConflictError(f"'{label}' already exists")

    max_order = db.session.query(func.max(model.sort_order)).scalar() or 0
    row = model(value=value, label=label, color=color, sort_order=max_order + 1)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"'{label}' already exists")
    return row.to_dict()


def update_option(kind: str, option_id: int, label=None, color: str | None = None) -> dict:
    """Label and colour are editable; value is the stable key stored on records and never changes."""
    model = _option_model(kind)
    row = db.session.get(model, option_id)
    if not row:
        raise NotFoundError("Setting not found")
    if label is not None:
        row.label = _clean_label(label)
    if color is not None:
        row.color = validate_color(color)
    db.session.commit()
    return row.to_dict()


def delete_option(kind: str, option_id: int) -> None:
    model = _option_model(kind)
    row = db.session.get(model, option_id)
    if not row:
        raise NotFoundError("Setting not found")
    db.session.delete(row)
    db.session.commit()


def seed_option_defaults(kind: str) -> int:
    """Persist the built-in defaults for an empty table. Returns rows inserted."""
    model = _option_model(kind)
    if db.session.query(model).count():
        return 0
    options = default_options(kind)
    for option in options:
        db.session.add(model(
            value=option["value"],
            label=option["label"],
            color=option["color"],
            sort_order=option["sort_order"],
        ))
    db.session.commit()
    return len(options)


# ---------------------------------------------------------------------------
# Card companies
# ---------------------------------------------------------------------------

def list_card_companies() -> list[dict]:
    """Active card companies by name; built-in terms while the table is empty."""
    if not db.session.query(CardCompanySetting).count():
        return default_card_companies()
    rows = db.session.query(CardCompanySetting).filter(
        CardCompanySetting.is_active.is_(True)
    ).order_by(CardCompanySetting.name.asc()).all()
    return [row.to_dict() for row in rows]


def resolve_card_company(name: str | None) -> dict | None:
    """Settlement terms for a card company name, following the loader precedence."""
    if not name:
        return None
    for company in list_card_companies():
        if company["name"] == name:
            return company
    return None


def create_card_company(payload: dict) -> dict:
    patch = validate_payload(model=CardCompanySetting, payload=payload, policy=CARD_COMPANY_POLICY, partial=False)
    patch.setdefault("fee_rate", DEFAULT_CARD_FEE_RATE)
    patch.setdefault("deposit_days", DEFAULT_CARD_DEPOSIT_DAYS)
    enforce_rules_card_company(patch)

    existing = db.session.query(CardCompanySetting).filter_by(name=patch["name"]).first()
    if existing and existing.is_active:
        raise ConflictError(f"Card company '{patch['name']}' already exists")

    if existing:
        # Re-adding a deactivated company revives the row
        for key, value in patch.items():
            setattr(existing, key, value)
        existing.is_active = True
        company = existing
    else:
        company = CardCompanySetting(**patch)
        db.session.add(company)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Card company '{patch['name']}' already exists")
    return company.to_dict()


def update_card_company(company_id: int, payload: dict) -> dict:
    company = db.session.get(CardCompanySetting, company_id)
    if not company:
        raise NotFoundError("Card company not found")
    patch = validate_payload(model=CardCompanySetting, payload=payload, policy=CARD_COMPANY_POLICY, partial=True)
    enforce_rules_card_company(patch)
    for key, value in patch.items():
        setattr(company, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Card company name already exists")
    return company.to_dict()


def deactivate_card_company(company_id: int) -> None:
    """Soft delete: past sales keep referring to the name."""
    company = db.session.get(CardCompanySetting, company_id)
    if not company:
        raise NotFoundError("Card company not found")
    company.is_active = False
    db.session.commit()


# ---------------------------------------------------------------------------
# Product categories
# ---------------------------------------------------------------------------

def list_product_categories() -> list[dict]:
    if not db.session.query(ProductCategory).count():
        return default_product_categories()
    rows = db.session.query(ProductCategory).filter(
        ProductCategory.is_active.is_(True)
    ).order_by(ProductCategory.sort_order.asc(), ProductCategory.id.asc()).all()
    return [row.to_dict() for row in rows]


def create_product_category(payload: dict) -> dict:
    patch = validate_payload(model=ProductCategory, payload=payload, policy=PRODUCT_CATEGORY_POLICY, partial=False)
    existing = db.session.query(ProductCategory).filter_by(name=patch["name"]).first()
    if existing and existing.is_active:
        raise ConflictError(f"Category '{patch['name']}' already exists")

    if "sort_order" not in patch:
        patch["sort_order"] = (db.session.query(func.max(ProductCategory.sort_order)).scalar() or 0) + 1

    if existing:
        for key, value in patch.items():
            setattr(existing, key, value)
        existing.is_active = True
        category = existing
    else:
        category = ProductCategory(**patch)
        db.session.add(category)

    db.session.commit()
    return category.to_dict()


def update_product_category(category_id: int, payload: dict) -> dict:
    category = db.session.get(ProductCategory, category_id)
    if not category:
        raise NotFoundError("Category not found")
    patch = validate_payload(model=ProductCategory, payload=payload, policy=PRODUCT_CATEGORY_POLICY, partial=True)
    for key, value in patch.items():
        setattr(category, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category name already exists")
    return category.to_dict()


def deactivate_product_category(category_id: int) -> None:
    category = db.session.get(ProductCategory, category_id)
    if not category:
        raise NotFoundError("Category not found")
    category.is_active = False
    db.session.commit()


def save_all_settings(card_settings: list[dict] | None, categories: list[str] | None) -> dict:
    """
    Bulk save from the settings screen in one transaction.

    card_settings: [{"id", "fee_rate", "deposit_days"}] updates existing companies.
    categories: ordered names; every category is deactivated, then the listed
    names are upserted active with sort_order = position + 1.
    """
    card_settings = card_settings or []
    categories = categories or []
    if not isinstance(card_settings, list) or not isinstance(categories, list):
        raise ValidationError("card_settings and categories must be lists")

    try:
        for entry in card_settings:
            if not isinstance(entry, dict) or entry.get("id") is None:
                raise ValidationError("card_settings entries need an id")
            company = db.session.get(CardCompanySetting, entry["id"])
            if not company:
                raise NotFoundError(f"Card company {entry['id']} not found")
            patch = validate_payload(
                model=CardCompanySetting,
                payload={k: v for k, v in entry.items() if k in ("fee_rate", "deposit_days")},
                policy=CARD_COMPANY_POLICY,
                partial=True,
            )
            enforce_rules_card_company(patch)
            for key, value in patch.items():
                setattr(company, key, value)

        names = []
        for name in categories:
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("category names must be non-empty strings")
            if len(name.strip()) > 100:
                raise ValidationError("category name exceeds max length 100")
            if name.strip() not in names:
                names.append(name.strip())

        db.session.query(ProductCategory).update({ProductCategory.is_active: False}, synchronize_session=False)
        existing = {row.name: row for row in db.session.query(ProductCategory).all()}
        for index, name in enumerate(names):
            row = existing.get(name)
            if row is None:
                row = ProductCategory(name=name)
                db.session.add(row)
            row.sort_order = index + 1
            row.is_active = True

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return {
        "card_companies": list_card_companies(),
        "product_categories": list_product_categories(),
    }


def seed_defaults() -> dict:
    """Write every built-in default into its empty table (used by `flask system init`)."""
    counts = {kind: seed_option_defaults(kind) for kind in OPTION_MODELS}

    if not db.session.query(CardCompanySetting).count():
        for name, fee_rate, deposit_days in CARD_COMPANY_DEFAULTS:
            db.session.add(CardCompanySetting(name=name, fee_rate=fee_rate, deposit_days=deposit_days, is_active=True))
        counts["card_company_settings"] = len(CARD_COMPANY_DEFAULTS)
    else:
        counts["card_company_settings"] = 0

    if not db.session.query(ProductCategory).count():
        for index, name in enumerate(PRODUCT_CATEGORY_DEFAULTS):
            db.session.add(ProductCategory(name=name, sort_order=index + 1, is_active=True))
        counts["product_categories"] = len(PRODUCT_CATEGORY_DEFAULTS)
    else:
        counts["product_categories"] = 0

    db.session.commit()
    logger.info("Seeded settings defaults: %s", counts)
    return counts
