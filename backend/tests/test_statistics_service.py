import unittest
from datetime import date
from flask import Flask

from hazel.extensions import db
from hazel.models import Expense, ExpenseCategory, Sale
from hazel.services import dashboard_service, statistics_service
from hazel.services.statistics_service import percentage
from hazel.validation import ValidationError


class StatisticsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            APP_TIMEZONE="Asia/Seoul",
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from hazel import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(Sale).delete()
        db.session.query(Expense).delete()
        db.session.query(ExpenseCategory).delete()
        db.session.commit()

    def _sale(self, sale_date, amount, category="bouquet", method="cash", channel="other", phone=None, deposit_status=None):
        if deposit_status is None:
            deposit_status = "pending" if method == "card" else "not_applicable"
        db.session.add(Sale(
            date=sale_date,
            product_name=category,
            product_category=category,
            amount=amount,
            payment_method=method,
            reservation_channel=channel,
            customer_phone=phone,
            deposit_status=deposit_status,
            photos=[],
        ))
        db.session.commit()

    def _expense(self, expense_date, category, total):
        db.session.add(Expense(
            date=expense_date,
            item_name=category,
            category=category,
            unit_price=total,
            quantity=1,
            total_amount=total,
            payment_method="card",
        ))
        db.session.commit()

    def test_percentage_rounds_half_up(self):
        self.assertEqual(percentage(1, 3), 33)
        self.assertEqual(percentage(2, 3), 67)
        self.assertEqual(percentage(1, 8), 13)
        self.assertEqual(percentage(5, 5), 100)
        self.assertEqual(percentage(10, 0), 0)

    def test_category_buckets_sorted_by_amount(self):
        self._sale(date(2024, 3, 1), 10000, category="bouquet")
        self._sale(date(2024, 3, 2), 20000, category="bouquet")
        self._sale(date(2024, 3, 3), 60000, category="wreath")
        self._sale(date(2024, 4, 1), 99000, category="vase")

        buckets = statistics_service.category_stats("2024-03")

        self.assertEqual([b["name"] for b in buckets], ["wreath", "bouquet"])
        self.assertEqual(buckets[0], {"name": "wreath", "count": 1, "amount": 60000, "percentage": 67})
        self.assertEqual(buckets[1]["count"], 2)
        self.assertEqual(buckets[1]["percentage"], 33)

    def test_payment_and_channel_labels(self):
        self._sale(date(2024, 3, 1), 30000, method="card", channel="kakaotalk")
        self._sale(date(2024, 3, 2), 10000, method="cash", channel="phone")

        methods = statistics_service.payment_method_stats("2024-03")
        self.assertEqual(methods[0]["method"], "card")
        self.assertEqual(methods[0]["label"], "카드")
        self.assertEqual(methods[0]["percentage"], 75)

        channels = statistics_service.channel_stats("2024-03")
        self.assertEqual([c["label"] for c in channels], ["카카오톡", "전화"])

    def test_expense_categories_use_saved_labels(self):
        db.session.add(ExpenseCategory(value="flower_purchase", label="생화 매입", color="#ec4899", sort_order=1))
        db.session.commit()
        self._expense(date(2024, 3, 5), "flower_purchase", 40000)
        self._expense(date(2024, 3, 6), "rent", 60000)

        buckets = statistics_service.expense_category_stats("2024-03")

        self.assertEqual(buckets[0], {"category": "rent", "label": "임대료", "amount": 60000, "percentage": 60})
        self.assertEqual(buckets[1]["label"], "생화 매입")
        self.assertNotIn("count", buckets[1])

    def test_customer_stats_new_vs_returning(self):
        self._sale(date(2024, 2, 10), 10000, phone="010-1111-1111")
        self._sale(date(2024, 3, 1), 10000, phone="010-1111-1111")
        self._sale(date(2024, 3, 2), 10000, phone="010-2222-2222")
        self._sale(date(2024, 3, 3), 10000, phone="010-2222-2222")
        self._sale(date(2024, 3, 4), 10000)

        stats = statistics_service.customer_stats("2024-03")

        self.assertEqual(stats, {"new_customers": 1, "returning_customers": 1, "total_customers": 2})

    def test_customer_stats_empty_month(self):
        stats = statistics_service.customer_stats("2024-03")
        self.assertEqual(stats["total_customers"], 0)

    def test_monthly_trend_fills_empty_months(self):
        self._sale(date(2023, 12, 31), 5000)
        self._sale(date(2024, 2, 1), 7000)
        self._sale(date(2024, 2, 29), 3000)

        trend = statistics_service.monthly_sales_trend(3, until=date(2024, 2, 15))

        self.assertEqual([t["month"] for t in trend], ["2023-12", "2024-01", "2024-02"])
        self.assertEqual([t["label"] for t in trend], ["12월", "1월", "2월"])
        self.assertEqual([t["total_amount"] for t in trend], [5000, 0, 10000])
        self.assertEqual(trend[2]["sales_count"], 2)

    def test_monthly_trend_rejects_bad_window(self):
        with self.assertRaises(ValidationError):
            statistics_service.monthly_sales_trend(0)
        with self.assertRaises(ValidationError):
            statistics_service.monthly_sales_trend(25)

    def test_daily_trend(self):
        self._sale(date(2024, 3, 9), 5000)
        self._sale(date(2024, 3, 9), 5000)
        self._sale(date(2024, 3, 2), 1000)

        trend = statistics_service.daily_sales_trend("2024-03")

        self.assertEqual(trend[0], {"date": "2024-03-02", "label": "2일", "total_amount": 1000, "sales_count": 1})
        self.assertEqual(trend[1]["total_amount"], 10000)

    def test_month_summary_splits_by_payment_method(self):
        self._sale(date(2024, 3, 1), 30000, method="card")
        self._sale(date(2024, 3, 2), 20000, method="transfer")
        self._sale(date(2024, 3, 3), 10000, method="card", deposit_status="completed")

        summary = dashboard_service.month_summary("2024-03")

        self.assertEqual(summary["month"], "2024-03")
        self.assertEqual(summary["total_amount"], 60000)
        self.assertEqual(summary["sales_count"], 3)
        self.assertEqual(summary["card_amount"], 40000)
        self.assertEqual(summary["transfer_amount"], 20000)
        self.assertEqual(summary["cash_amount"], 0)
        self.assertEqual(summary["pending_count"], 1)
        self.assertEqual(summary["pending_amount"], 30000)

    def test_today_summary(self):
        self._sale(date(2024, 3, 1), 30000)
        self._sale(date(2024, 3, 2), 20000)

        summary = dashboard_service.today_summary(date(2024, 3, 2))

        self.assertEqual(summary["date"], "2024-03-02")
        self.assertEqual(summary["total_amount"], 20000)


if __name__ == "__main__":
    unittest.main()
