# Overview: Service-layer operations for CSV exports; encapsulates business logic and database work.

"""
Export Service

Monthly sales and expense ledgers as CSV. The output starts with a UTF-8 BOM
so spreadsheet apps open the Korean headers correctly. Amounts are written as
plain integers (won) so the cells stay numeric.
"""

from __future__ import annotations

import csv
import io

from . import expense_service, sales_service, settings_service
from ..periods import parse_month
from ..settings_catalog import CHANNEL_LABELS, EXPENSE_LABELS, PAYMENT_LABELS

BOM = "\ufeff"

SALE_COLUMNS = (
    ("날짜", "date"),
    ("상품명", "product_name"),
    ("카테고리", "product_category"),
    ("금액", "amount"),
    ("결제방법", "payment_method"),
    ("카드사", "card_company"),
    ("고객명", "customer_name"),
    ("연락처", "customer_phone"),
    ("예약채널", "reservation_channel"),
    ("메모", "note"),
)

EXPENSE_COLUMNS = (
    ("날짜", "date"),
    ("품목", "item_name"),
    ("분류", "category"),
    ("단가", "unit_price"),
    ("수량", "quantity"),
    ("합계", "total_amount"),
    ("결제방법", "payment_method"),
    ("카드사", "card_company"),
    ("거래처", "vendor"),
    ("메모", "note"),
)


def _write_csv(columns, rows: list[dict]) -> str:
    buffer = io.StringIO()
    buffer.write(BOM)
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow(["" if row.get(key) is None else row.get(key) for _, key in columns])
    return buffer.getvalue()


def export_filename(kind: str, month: str | None) -> str:
    year, month_num = parse_month(month)
    return f"{kind}-{year:04d}-{month_num:02d}.csv"


def sales_csv(month: str | None = None) -> str:
    payment_labels = dict(PAYMENT_LABELS)
    payment_labels.update(settings_service.option_labels("payment_methods"))

    rows = []
    for sale in sales_service.list_sales(month):
        sale["payment_method"] = payment_labels.get(sale["payment_method"], sale["payment_method"])
        sale["reservation_channel"] = CHANNEL_LABELS.get(sale["reservation_channel"], sale["reservation_channel"])
        rows.append(sale)
    return _write_csv(SALE_COLUMNS, rows)


def expenses_csv(month: str | None = None) -> str:
    category_labels = dict(EXPENSE_LABELS)
    category_labels.update(settings_service.option_labels("expense_categories"))
    payment_labels = dict(PAYMENT_LABELS)
    payment_labels.update(settings_service.option_labels("expense_payment_methods"))

    rows = []
    for expense in expense_service.list_expenses(month):
        expense["category"] = category_labels.get(expense["category"], expense["category"])
        expense["payment_method"] = payment_labels.get(expense["payment_method"], expense["payment_method"])
        rows.append(expense)
    return _write_csv(EXPENSE_COLUMNS, rows)
