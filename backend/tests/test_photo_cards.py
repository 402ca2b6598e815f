"""
Photo gallery tests.

Verifies:
- Cursor pagination (8 per page, newest updated first)
- Tag filtering matches whole tags only
- Customer filter goes through the linked sale
- Tag rename/delete is carried onto every card
- Uploads, reordering, and signed downloads
"""

from datetime import date, datetime, timedelta
from io import BytesIO

import pytest

from hazel.models import Customer, PhotoCard, Sale
from hazel.services import photo_card_service, photo_tag_service
from hazel.validation import ConflictError, ValidationError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _card(db_session, title, tags=None, updated_at=None, sale_id=None):
    stamp = updated_at or datetime(2024, 3, 1, 12, 0, 0)
    card = PhotoCard(title=title, tags=tags or [], photos=[], sale_id=sale_id, created_at=stamp, updated_at=stamp)
    db_session.add(card)
    db_session.commit()
    return card


class TestPagination:

    def test_pages_of_eight(self, db_session):
        base = datetime(2024, 3, 1, 12, 0, 0)
        for i in range(10):
            _card(db_session, f"card {i}", updated_at=base + timedelta(minutes=i))

        first = photo_card_service.list_photo_cards()
        assert len(first["cards"]) == 8
        assert first["has_more"] is True
        assert first["cards"][0]["title"] == "card 9"
        assert first["next_cursor"] is not None

        second = photo_card_service.list_photo_cards(cursor=first["next_cursor"])
        assert [c["title"] for c in second["cards"]] == ["card 1", "card 0"]
        assert second["has_more"] is False
        assert second["next_cursor"] is None

    def test_exactly_one_page(self, db_session):
        base = datetime(2024, 3, 1, 12, 0, 0)
        for i in range(8):
            _card(db_session, f"card {i}", updated_at=base + timedelta(seconds=i))

        page = photo_card_service.list_photo_cards()
        assert len(page["cards"]) == 8
        assert page["has_more"] is False

    def test_bad_cursor(self, db_session):
        with pytest.raises(ValidationError):
            photo_card_service.list_photo_cards(cursor="yesterday")


class TestFilters:

    def test_tag_matches_whole_tag_only(self, db_session):
        _card(db_session, "장미 꽃다발", tags=["rose", "bouquet"])
        _card(db_session, "장미 한 아름", tags=["roses"])
        _card(db_session, "100% 수국", tags=["100%"])

        titles = [c["title"] for c in photo_card_service.list_photo_cards(tag="rose")["cards"]]
        assert titles == ["장미 꽃다발"]

        titles = [c["title"] for c in photo_card_service.list_photo_cards(tag="100%")["cards"]]
        assert titles == ["100% 수국"]

    def test_korean_tags(self, db_session):
        _card(db_session, "결혼식", tags=["웨딩", "부케"])
        _card(db_session, "개업", tags=["화환"])

        titles = [c["title"] for c in photo_card_service.list_photo_cards(tag="부케")["cards"]]
        assert titles == ["결혼식"]

    def test_customer_filter_uses_linked_sale(self, db_session):
        customer = Customer(name="김민지", phone="010-1111-2222")
        db_session.add(customer)
        db_session.commit()
        sale = Sale(
            date=date(2024, 3, 1), product_name="꽃다발", product_category="bouquet", amount=30000,
            payment_method="cash", customer_id=customer.id, photos=[],
        )
        db_session.add(sale)
        db_session.commit()

        _card(db_session, "민지님 꽃다발", sale_id=sale.id)
        _card(db_session, "진열용")

        titles = [c["title"] for c in photo_card_service.list_photo_cards(customer_id=customer.id)["cards"]]
        assert titles == ["민지님 꽃다발"]


class TestCards:

    def test_tags_are_trimmed_and_deduplicated(self, db_session):
        card = photo_card_service.create_photo_card({"title": " 작약 ", "tags": ["peony", " peony ", "pink"]})
        assert card["title"] == "작약"
        assert card["tags"] == ["peony", "pink"]

    def test_title_required(self, db_session):
        with pytest.raises(ValidationError):
            photo_card_service.create_photo_card({"title": "  "})

    def test_too_many_photos(self, db_session):
        photos = [{"url": f"/media/photo-cards/1/{i}.png"} for i in range(11)]
        with pytest.raises(ValidationError):
            photo_card_service.create_photo_card({"title": "많음", "photos": photos})

    def test_one_card_per_sale(self, db_session):
        sale = Sale(
            date=date(2024, 3, 1), product_name="꽃다발", product_category="bouquet", amount=30000,
            payment_method="cash", photos=[],
        )
        db_session.add(sale)
        db_session.commit()

        first = photo_card_service.upsert_photo_card_for_sale(sale.id, "첫 제목", [{"url": "/media/sale-photos/a.png"}])
        second = photo_card_service.upsert_photo_card_for_sale(sale.id, "새 제목", [])

        assert first["id"] == second["id"]
        assert second["title"] == "새 제목"
        assert photo_card_service.get_photo_card_by_sale(sale.id)["photos"] == []
        assert db_session.query(PhotoCard).count() == 1


class TestTags:

    def test_rename_is_carried_to_cards(self, db_session):
        tag = photo_tag_service.create_photo_tag("rose", "#ef4444")
        tagged = _card(db_session, "장미", tags=["rose", "red"])
        similar = _card(db_session, "장미들", tags=["roses"])

        photo_tag_service.update_photo_tag(tag["id"], name="장미")

        db_session.expire_all()
        assert db_session.get(PhotoCard, tagged.id).tags == ["장미", "red"]
        assert db_session.get(PhotoCard, similar.id).tags == ["roses"]

    def test_delete_strips_tag_and_counts_cards(self, db_session):
        tag = photo_tag_service.create_photo_tag("wedding")
        first = _card(db_session, "부케", tags=["wedding", "white"])
        _card(db_session, "웨딩 장식", tags=["wedding"])
        _card(db_session, "생일", tags=["birthday"])

        assert photo_tag_service.delete_photo_tag(tag["id"]) == 2

        db_session.expire_all()
        assert db_session.get(PhotoCard, first.id).tags == ["white"]
        assert photo_tag_service.list_photo_tags() == []

    def test_duplicate_tag(self, db_session):
        photo_tag_service.create_photo_tag("rose")
        with pytest.raises(ConflictError):
            photo_tag_service.create_photo_tag(" rose ")

    def test_rename_onto_existing_tag(self, db_session):
        photo_tag_service.create_photo_tag("rose")
        other = photo_tag_service.create_photo_tag("tulip")
        with pytest.raises(ConflictError):
            photo_tag_service.update_photo_tag(other["id"], name="rose")

    def test_random_color_from_palette(self, db_session):
        tag = photo_tag_service.create_photo_tag("lily")
        assert tag["color"] in photo_tag_service.TAG_COLORS


class TestPhotoCardRoutes:

    def _upload(self, client, headers, card_id, names=("a.png", "b.png")):
        return client.post(
            f"/api/photo-cards/{card_id}/photos",
            data={
                "files": [(BytesIO(PNG_BYTES), name) for name in names],
                "original_names": [f"원본-{name}" for name in names],
            },
            content_type="multipart/form-data",
            headers=headers,
        )

    def test_upload_reorder_download_delete(self, client, headers):
        card = client.post("/api/photo-cards", json={"title": "웨딩 부케"}, headers=headers).json

        resp = self._upload(client, headers, card["id"])
        assert resp.status_code == 201
        uploaded = resp.json["photos"]
        assert [p["original_name"] for p in uploaded] == ["원본-a.png", "원본-b.png"]

        urls = [p["url"] for p in uploaded]
        resp = client.put(f"/api/photo-cards/{card['id']}/photos/order", json={"photos": urls[::-1]}, headers=headers)
        assert resp.status_code == 200
        assert [p["url"] for p in resp.json["photos"]] == urls[::-1]

        resp = client.get(f"/api/photo-cards/{card['id']}/download", query_string={"url": urls[0]}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["filename"] == "원본-a.png"
        signed = client.get(resp.json["url"])
        assert signed.status_code == 200
        assert signed.data == PNG_BYTES
        assert "attachment" in signed.headers["Content-Disposition"]

        resp = client.get(f"/api/photo-cards/{card['id']}/download-all", headers=headers)
        assert len(resp.json["urls"]) == 2

        resp = client.delete(f"/api/photo-cards/{card['id']}", headers=headers)
        assert resp.json == {"success": True, "removed_photos": 2}
        assert client.get(urls[0]).status_code == 404

    def test_reorder_must_name_every_photo(self, client, headers):
        card = client.post("/api/photo-cards", json={"title": "웨딩 부케"}, headers=headers).json
        uploaded = self._upload(client, headers, card["id"]).json["photos"]

        resp = client.put(
            f"/api/photo-cards/{card['id']}/photos/order",
            json={"photos": [uploaded[0]["url"]]},
            headers=headers,
        )
        assert resp.status_code == 400

    def test_tampered_signed_link(self, client):
        assert client.get("/media/signed/not-a-token").status_code == 404

    def test_tag_routes(self, client, headers):
        resp = client.post("/api/photo-tags", json={"name": "rose", "color": "#ef4444"}, headers=headers)
        assert resp.status_code == 201
        client.post("/api/photo-cards", json={"title": "장미", "tags": ["rose"]}, headers=headers)

        resp = client.delete(f"/api/photo-tags/{resp.json['id']}", headers=headers)
        assert resp.json == {"success": True, "cards_updated": 1}

    def test_unauthenticated(self, client):
        assert client.get("/api/photo-cards").status_code == 401
