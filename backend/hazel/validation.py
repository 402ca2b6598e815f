from __future__ import annotations
import re
from datetime import date, datetime
from hazel.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Upper bound for any single amount in won (1억)
MAX_AMOUNT_WON = 100_000_000
MAX_QUANTITY = 10_000
MAX_IDS_PER_BATCH = 100

PAYMENT_METHODS = ("cash", "card", "transfer", "naverpay", "kakaopay")
DEPOSIT_STATUSES = ("pending", "completed", "not_applicable")
RESERVATION_CHANNELS = ("phone", "kakaotalk", "naver_booking", "road", "other")
RESERVATION_STATUSES = ("pending", "confirmed", "completed", "cancelled")
CUSTOMER_GRADES = ("new", "regular", "vip", "blacklist")
GENDERS = ("male", "female")

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate phone number)."""


class NotFoundError(LookupError):
    """404-level missing record."""


class StateError(ValueError):
    """409-level lifecycle violation (e.g., converting a completed reservation)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: closed value sets per field
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip().replace(",", "")
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Rates (card fee percentage)
    if isinstance(coltype, (Numeric, Float)):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{col.key} must be a number")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Business dates (YYYY-MM-DD)
    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    # JSON columns carry lists (tags, photos)
    if isinstance(coltype, JSON):
        if not isinstance(value, list):
            raise ValidationError(f"{col.key} must be a list")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields) and closed choices
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # Empty strings on optional columns mean "clear"
        if isinstance(raw, str) and raw.strip() == "" and col.nullable:
            raw = None

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        allowed = policy.choices.get(k)
        if allowed is not None and val not in allowed:
            raise ValidationError(f"{k} must be one of: {', '.join(allowed)}")

        patch[k] = val

    return patch


def _check_range(patch: dict, key: str, low: int, high: int) -> None:
    value = patch.get(key)
    if value is None:
        return
    if value < low:
        raise ValidationError(f"{key} must be >= {low}")
    if value > high:
        raise ValidationError(f"{key} cannot exceed {high:,}")


def _check_max_text(patch: dict, key: str, limit: int) -> None:
    value = patch.get(key)
    if isinstance(value, str) and len(value) > limit:
        raise ValidationError(f"{key} exceeds max length {limit}")


def enforce_rules_sale(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_range(patch, "amount", 0, MAX_AMOUNT_WON)
    _check_range(patch, "fee", 0, MAX_AMOUNT_WON)
    _check_range(patch, "expected_deposit", 0, MAX_AMOUNT_WON)
    _check_max_text(patch, "note", 1000)


def enforce_rules_expense(patch: dict) -> None:
    _check_range(patch, "unit_price", 0, MAX_AMOUNT_WON)
    _check_range(patch, "quantity", 1, MAX_QUANTITY)
    _check_max_text(patch, "note", 1000)


def enforce_rules_customer(patch: dict) -> None:
    phone = patch.get("phone")
    if phone is not None and len(phone) < 10:
        raise ValidationError("phone must be at least 10 characters")
    _check_max_text(patch, "note", 1000)


def enforce_rules_reservation(patch: dict) -> None:
    _check_range(patch, "estimated_amount", 0, MAX_AMOUNT_WON)
    _check_max_text(patch, "description", 1000)
    time_value = patch.get("time")
    if time_value is not None and not TIME_RE.match(time_value):
        raise ValidationError("time must be HH:MM")


def enforce_rules_card_company(patch: dict) -> None:
    fee_rate = patch.get("fee_rate")
    if fee_rate is not None and not (0 <= fee_rate <= 100):
        raise ValidationError("fee_rate must be between 0 and 100")
    _check_range(patch, "deposit_days", 0, 365)


def validate_color(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    if not HEX_COLOR_RE.match(value):
        raise ValidationError("color must be a #RRGGBB hex value")
    return value


def validate_ids(ids: Any) -> list[int]:
    """Batch id list (deposit confirmation and the like): 1..100 integers."""
    if not isinstance(ids, list) or not ids:
        raise ValidationError("ids must be a non-empty list")
    if len(ids) > MAX_IDS_PER_BATCH:
        raise ValidationError(f"ids cannot contain more than {MAX_IDS_PER_BATCH} entries")
    return [_coerce_int("ids", value) for value in ids]


def validate_search_query(query: Any) -> str:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("query is required")
    query = query.strip()
    if len(query) > 100:
        raise ValidationError("query exceeds max length 100")
    return query


def like_escape(value: str) -> str:
    """Escape LIKE wildcards; pair with escape="!" in the query."""
    return value.replace("!", "!!").replace("%", "!%").replace("_", "!_")
