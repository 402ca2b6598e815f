"""
Health/version endpoints and error reporting.
"""

import httpx
import pytest

from hazel import error_reporting
from hazel.error_reporting import build_embed, internal_error, report_error, sanitize_stack
from hazel.services import dashboard_service, photo_card_service, reservation_service, statistics_service


class TestHealth:

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["status"] == "healthy"
        assert resp.json["checks"]["push"]["configured"] is True

    def test_missing_push_keys_degrade(self, app, client, db_session):
        original = app.config["VAPID_PRIVATE_KEY"]
        app.config["VAPID_PRIVATE_KEY"] = None
        try:
            resp = client.get("/health")
        finally:
            app.config["VAPID_PRIVATE_KEY"] = original
        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"

    def test_version(self, client):
        resp = client.get("/version")
        assert resp.json["api_version"] == "1.0.0"


class TestSanitizeStack:

    def test_redacts_paths_emails_and_secrets(self):
        stack = (
            'File "/home/minji/hazel/app.py", line 3\n'
            "owner minji@example.com failed\n"
            "token=abc123 password: hunter2\n"
        )
        cleaned = sanitize_stack(stack)
        assert "/home/minji" not in cleaned
        assert "/home/user/hazel/app.py" in cleaned
        assert "[EMAIL]" in cleaned
        assert "abc123" not in cleaned
        assert "hunter2" not in cleaned

    def test_keeps_last_lines(self):
        stack = "\n".join(f"line {i}" for i in range(50))
        cleaned = sanitize_stack(stack).splitlines()
        assert len(cleaned) == 20
        assert cleaned[-1] == "line 49"


class TestReportError:

    def _raise(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            return exc

    def test_embed_fields(self, app):
        with app.app_context():
            embed = build_embed(self._raise(), action="sales.create", url="http://localhost/api/sales")
        names = [field["name"] for field in embed["fields"]]
        assert names == ["Error", "Action", "Time", "URL", "Stack trace"]
        assert embed["fields"][0]["value"] == "boom"

    def test_disabled_while_testing(self, app, monkeypatch):
        calls = []
        monkeypatch.setattr(error_reporting.httpx, "post", lambda *a, **kw: calls.append(a))
        monkeypatch.setitem(app.config, "ERROR_WEBHOOK_URL", "https://hooks.example/abc")

        with app.app_context():
            assert report_error(self._raise(), action="x") is False
        assert calls == []

    def test_posts_embed_to_webhook(self, app, monkeypatch):
        posted = {}

        def fake_post(url, json, timeout):
            posted["url"] = url
            posted["json"] = json
            return httpx.Response(204, request=httpx.Request("POST", url))

        monkeypatch.setattr(error_reporting.httpx, "post", fake_post)
        monkeypatch.setitem(app.config, "ERROR_WEBHOOK_URL", "https://hooks.example/abc")
        monkeypatch.setitem(app.config, "TESTING", False)

        with app.app_context():
            assert report_error(self._raise(), action="sales.create") is True
        assert posted["url"] == "https://hooks.example/abc"
        assert posted["json"]["embeds"][0]["title"] == "Server error"

    def test_webhook_failure_is_swallowed(self, app, monkeypatch):
        def failing_post(url, json, timeout):
            raise httpx.ConnectError("unreachable")

        monkeypatch.setattr(error_reporting.httpx, "post", failing_post)
        monkeypatch.setitem(app.config, "ERROR_WEBHOOK_URL", "https://hooks.example/abc")
        monkeypatch.setitem(app.config, "TESTING", False)

        with app.app_context():
            assert report_error(self._raise(), action="sales.create") is False

    def test_internal_error_hides_details(self, app):
        with app.test_request_context("/api/sales"):
            body, status = internal_error("sales.create", self._raise())
        assert status == 500
        assert body.json == {"error": "Internal server error"}


class TestUnexpectedRouteErrors:

    @pytest.mark.parametrize("service,name,path,action", [
        (statistics_service, "category_stats", "/api/statistics/categories", "statistics.categories"),
        (dashboard_service, "today_summary", "/api/dashboard/today", "dashboard.today"),
        (reservation_service, "get_reservation", "/api/reservations/1", "reservations.get_reservation"),
        (photo_card_service, "get_photo_card", "/api/photo-cards/1", "photo_cards.get_photo_card"),
    ])
    def test_reported_and_returned_as_json(self, client, headers, monkeypatch, service, name, path, action):
        reported = []

        def explode(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(service, name, explode)
        monkeypatch.setattr(error_reporting, "report_error", lambda exc, action, url=None: reported.append(action))

        resp = client.get(path, headers=headers)

        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}
        assert reported == [action]


@pytest.mark.parametrize("path", ["/media/sale-photos/../../etc/passwd", "/media/unknown/a.png"])
def test_media_rejects_bad_paths(client, path):
    assert client.get(path).status_code == 404
