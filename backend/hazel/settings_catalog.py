# Overview: Built-in defaults for shop settings (the fallback layer under persisted rows).

"""
Settings Catalog

Each option table resolves with a fixed precedence:

    persisted rows  >  built-in defaults (this module)

A table only falls back when it holds no rows at all; once an operator saves
anything, the stored rows are authoritative. `flask system init` can also seed
these defaults into the database.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CATEGORY_COLOR = "#f43f5e"
DEFAULT_PAYMENT_COLOR = "#3b82f6"
DEFAULT_CARD_FEE_RATE = 2.0
DEFAULT_CARD_DEPOSIT_DAYS = 3


@dataclass(frozen=True)
class OptionDefault:
    value: str
    label: str
    color: str

    def to_dict(self, sort_order: int) -> dict:
        return {
            "id": None,
            "value": self.value,
            "label": self.label,
            "color": self.color,
            "sort_order": sort_order,
            "is_default": True,
            "created_at": None,
        }


SALE_CATEGORY_DEFAULTS = (
    OptionDefault("bouquet", "꽃다발", "#f43f5e"),
    OptionDefault("basket", "꽃바구니", "#ec4899"),
    OptionDefault("vase", "화병", "#a855f7"),
    OptionDefault("wreath", "화환", "#f97316"),
    OptionDefault("other", "기타", "#9ca3af"),
)

PAYMENT_METHOD_DEFAULTS = (
    OptionDefault("cash", "현금", "#f97316"),
    OptionDefault("card", "카드", "#3b82f6"),
    OptionDefault("transfer", "계좌이체", "#a855f7"),
    OptionDefault("naverpay", "네이버페이", "#22c55e"),
    OptionDefault("kakaopay", "카카오페이", "#eab308"),
)

EXPENSE_CATEGORY_DEFAULTS = (
    OptionDefault("flower_purchase", "꽃 사입", "#ec4899"),
    OptionDefault("delivery", "배송비", "#3b82f6"),
    OptionDefault("advertising", "광고비", "#a855f7"),
    OptionDefault("rent", "임대료", "#f97316"),
    OptionDefault("utilities", "공과금", "#06b6d4"),
    OptionDefault("supplies", "소모품", "#6b7280"),
    OptionDefault("other", "기타", "#9ca3af"),
)

EXPENSE_PAYMENT_METHOD_DEFAULTS = (
    OptionDefault("card", "카드", "#3b82f6"),
    OptionDefault("cash", "현금", "#f97316"),
    OptionDefault("transfer", "계좌이체", "#a855f7"),
)

# (name, fee_rate %, deposit_days)
CARD_COMPANY_DEFAULTS = (
    ("신한카드", 2.0, 3),
    ("국민카드", 2.0, 3),
    ("삼성카드", 2.2, 2),
    ("현대카드", 2.1, 3),
    ("롯데카드", 2.0, 3),
    ("하나카드", 2.0, 3),
    ("우리카드", 2.0, 3),
    ("BC카드", 2.0, 3),
)

PRODUCT_CATEGORY_DEFAULTS = ("꽃다발", "꽃바구니", "화병", "화환", "기타")

# Labels used by statistics when no setting row names a value
PAYMENT_LABELS = {option.value: option.label for option in PAYMENT_METHOD_DEFAULTS}
CHANNEL_LABELS = {
    "phone": "전화",
    "kakaotalk": "카카오톡",
    "naver_booking": "네이버예약",
    "road": "로드",
    "other": "기타",
}
EXPENSE_LABELS = {option.value: option.label for option in EXPENSE_CATEGORY_DEFAULTS}

# Per-kind defaults, value prefix for generated slugs, and default colour
OPTION_KINDS = {
    "sale_categories": (SALE_CATEGORY_DEFAULTS, "cat", DEFAULT_CATEGORY_COLOR),
    "payment_methods": (PAYMENT_METHOD_DEFAULTS, "pay", DEFAULT_PAYMENT_COLOR),
    "expense_categories": (EXPENSE_CATEGORY_DEFAULTS, "cat", DEFAULT_CATEGORY_COLOR),
    "expense_payment_methods": (EXPENSE_PAYMENT_METHOD_DEFAULTS, "pay", DEFAULT_PAYMENT_COLOR),
}


def default_options(kind: str) -> list[dict]:
    defaults, _prefix, _color = OPTION_KINDS[kind]
    return [option.to_dict(index + 1) for index, option in enumerate(defaults)]


def default_card_companies() -> list[dict]:
    return [
        {
            "id": None,
            "name": name,
            "fee_rate": fee_rate,
            "deposit_days": deposit_days,
            "is_active": True,
            "is_default": True,
            "created_at": None,
        }
        for name, fee_rate, deposit_days in CARD_COMPANY_DEFAULTS
    ]


def default_product_categories() -> list[dict]:
    return [
        {
            "id": None,
            "name": name,
            "sort_order": index + 1,
            "is_active": True,
            "is_default": True,
            "created_at": None,
        }
        for index, name in enumerate(PRODUCT_CATEGORY_DEFAULTS)
    ]
