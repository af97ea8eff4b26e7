"""Purchase API and ledger tests."""

import pytest

from rapper_dashboard.exceptions import NotFoundError, ValidationError
from rapper_dashboard.models.enums import PurchaseStatus
from rapper_dashboard.models.purchase import Purchase
from rapper_dashboard.schemas.purchase import PurchaseItem
from rapper_dashboard.services.purchase_service import PurchaseService


def test_create_purchase(client, make_item):
    """Test recording an online purchase."""
    response = client.post(
        "/api/purchases",
        json={
            "userId": "user-1",
            "items": [make_item("a", 9.99), make_item("b", 4.50)],
            "total": 14.49,
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    purchase = data["data"]["purchase"]
    assert purchase["userId"] == "user-1"
    assert purchase["itemCount"] == 2
    assert purchase["status"] == "completed"
    assert purchase["source"] == "online"


def test_create_purchase_within_tolerance(client, make_item):
    """A total one cent off the item sum is accepted."""
    response = client.post(
        "/api/purchases",
        json={
            "userId": "user-1",
            "items": [make_item("a", 9.99), make_item("b", 10.00)],
            "total": 20.00,
        },
    )
    assert response.status_code == 201


def test_create_purchase_total_mismatch(client, make_item, db):
    """A total that does not match the items is rejected and nothing is stored."""
    response = client.post(
        "/api/purchases",
        json={
            "userId": "user-1",
            "items": [make_item("a", 5.00), make_item("b", 5.00)],
            "total": 12.00,
        },
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "El total no coincide con la suma de los items",
    }
    assert db.query(Purchase).count() == 0


def test_create_purchase_empty_items(client):
    """Test that a purchase needs at least one item."""
    response = client.post("/api/purchases", json={"userId": "user-1", "items": [], "total": 0})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_create_purchase_missing_fields(client, make_item):
    response = client.post("/api/purchases", json={"items": [make_item()]})
    assert response.status_code == 400


def test_create_purchase_non_finite_total(client, db):
    """Infinity in a raw JSON body cannot slip past the total check."""
    body = (
        '{"userId": "user-1", "total": Infinity, "items": [{"id": "a", "songName": "Track",'
        ' "albumName": "Album", "artist": "Artist", "albumCover": "cover.jpg",'
        ' "year": 2020, "price": Infinity}]}'
    )
    response = client.post(
        "/api/purchases", content=body, headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert db.query(Purchase).count() == 0


def test_create_synced_purchase(client, make_item):
    """A purchase carrying syncedAt is stored as an offline sync."""
    response = client.post(
        "/api/purchases",
        json={
            "userId": "user-1",
            "items": [make_item("a", 1.29)],
            "total": 1.29,
            "timestamp": "2026-10-01T12:00:00Z",
            "syncedAt": "2026-10-02T08:30:00Z",
        },
    )
    assert response.status_code == 201
    purchase = response.json()["data"]["purchase"]
    assert purchase["status"] == "synced"
    assert purchase["source"] == "offline-sync"


def test_list_purchases_newest_first(client, make_item):
    """Test listing purchases."""
    for index in range(3):
        client.post(
            "/api/purchases",
            json={"userId": "user-1", "items": [make_item(str(index), 1.0)], "total": 1.0},
        )

    response = client.get("/api/purchases")
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 3
    assert [p["items"][0]["id"] for p in data] == ["2", "1", "0"]


def test_list_purchases_filtered_by_user(client, make_item):
    client.post("/api/purchases", json={"userId": "a", "items": [make_item()], "total": 9.99})
    client.post("/api/purchases", json={"userId": "b", "items": [make_item()], "total": 9.99})

    response = client.get("/api/purchases", params={"userId": "b"})
    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["userId"] == "b"
    assert data[0]["metadata"]["source"] == "online"


def test_get_purchase(client, make_item):
    """Test getting a specific purchase."""
    create_response = client.post(
        "/api/purchases", json={"userId": "user-1", "items": [make_item()], "total": 9.99}
    )
    purchase_id = create_response.json()["data"]["purchase"]["id"]

    response = client.get(f"/api/purchases/{purchase_id}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == purchase_id
    assert data["items"][0]["songName"] == "Track"


def test_get_purchase_not_found(client):
    response = client.get("/api/purchases/12345")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Compra no encontrada"}


def test_purchase_stats(client, make_item):
    """Test aggregate spending for a user."""
    client.post(
        "/api/purchases",
        json={"userId": "u", "items": [make_item("a", 2.0), make_item("b", 3.0)], "total": 5.0},
    )
    client.post(
        "/api/purchases", json={"userId": "u", "items": [make_item("c", 1.0)], "total": 1.0}
    )

    response = client.get("/api/purchases/stats/u")
    assert response.status_code == 200
    assert response.json()["stats"] == {
        "totalPurchases": 2,
        "totalSpent": 6.0,
        "totalItems": 3,
        "averageSpent": 3.0,
    }


def test_purchase_stats_empty(client):
    response = client.get("/api/purchases/stats/nobody")
    assert response.json()["stats"] == {
        "totalPurchases": 0,
        "totalSpent": 0.0,
        "totalItems": 0,
        "averageSpent": 0.0,
    }


class TestPurchaseService:
    """Direct tests of the ledger."""

    def test_rejects_mismatched_total(self, db, make_item):
        service = PurchaseService(db)
        items = [PurchaseItem.model_validate(make_item("a", 10.0))]

        with pytest.raises(ValidationError):
            service.record_purchase("u", items, total=12.0)

    def test_store_rejects_mismatched_total(self, db, make_item):
        """The model refuses to persist an inconsistent purchase even without the service."""
        purchase = Purchase(
            user_id="u",
            items=[make_item("a", 10.0)],
            total=12.0,
            status="completed",
            timestamp=None,
            purchase_metadata={},
        )
        db.add(purchase)

        with pytest.raises(ValidationError):
            db.flush()
        db.rollback()

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_rejects_non_finite_total(self, make_item, value):
        purchase = Purchase(user_id="u", items=[make_item("a", value)], total=value)

        with pytest.raises(ValidationError):
            purchase.validate_total()

    def test_get_missing_purchase(self, db):
        with pytest.raises(NotFoundError):
            PurchaseService(db).get_purchase(1)

    def test_mark_as_synced(self, db, make_item):
        service = PurchaseService(db)
        items = [PurchaseItem.model_validate(make_item("a", 3.0))]
        purchase = service.record_purchase("u", items, total=3.0)

        service.mark_as_synced(purchase)

        assert purchase.status == "synced"
        assert purchase.synced_at is not None

    def test_list_by_status(self, db, make_item):
        service = PurchaseService(db)
        items = [PurchaseItem.model_validate(make_item("a", 3.0))]
        service.record_purchase("u", items, total=3.0)
        synced = service.record_purchase("u", items, total=3.0)
        service.mark_as_synced(synced)

        result = service.list_purchases(user_id="u", status=PurchaseStatus.SYNCED)
        assert [p.id for p in result] == [synced.id]
