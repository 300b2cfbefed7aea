from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tableflow.api.dependencies import get_menu_repository, get_order_repository, get_publisher
from tableflow.api.main import app

ORDER_BODY = {
    "tableNumber": 4,
    "customerSessionId": "sess-api",
    "paymentMethod": "card",
    "items": [
        {"menuItemId": "itm_pizza", "quantity": 2},
        {"menuItemId": "itm_salad", "quantity": 1, "specialInstructions": "dressing on the side"},
    ],
}


@pytest.fixture
def client(monkeypatch, menu_repository, order_repository, publisher) -> Iterator[TestClient]:
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("TABLE_NUMBER_MIN", raising=False)
    monkeypatch.delenv("TABLE_NUMBER_MAX", raising=False)
    app.dependency_overrides[get_menu_repository] = lambda: menu_repository
    app.dependency_overrides[get_order_repository] = lambda: order_repository
    app.dependency_overrides[get_publisher] = lambda: publisher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _place(client: TestClient) -> dict:
    response = client.post("/v1/orders", json=ORDER_BODY)
    assert response.status_code == 201
    return response.json()


def test_place_and_fetch_order(client, publisher) -> None:
    placed = _place(client)

    assert placed["status"] == "pending_approval"
    assert placed["totalAmount"] == {"amountCents": 2500, "currency": "USD"}
    assert placed["items"][1]["specialInstructions"] == "dressing on the side"
    assert publisher.channels() == ["events:manager"]

    fetched = client.get(f"/v1/orders/{placed['orderId']}")
    assert fetched.status_code == 200
    assert fetched.json()["orderNumber"] == placed["orderNumber"]


def test_manager_and_kitchen_flow(client) -> None:
    order_id = _place(client)["orderId"]

    pending = client.get("/v1/manager/orders/pending").json()["orders"]
    assert [order["orderId"] for order in pending] == [order_id]

    approved = client.post(
        f"/v1/manager/orders/{order_id}/approve", json={"estimatedMinutes": 15}
    )
    assert approved.status_code == 200
    assert approved.json()["kitchenStatus"] == "pending"
    assert approved.json()["minutesRemaining"] in (14, 15)

    active = client.get("/v1/kitchen/orders/active").json()["orders"]
    assert [order["orderId"] for order in active] == [order_id]

    for kitchen_status in ("preparing", "ready"):
        response = client.post(
            f"/v1/kitchen/orders/{order_id}/status", json={"kitchenStatus": kitchen_status}
        )
        assert response.status_code == 200
        assert response.json()["kitchenStatus"] == kitchen_status

    completed = client.post(f"/v1/manager/orders/{order_id}/complete")
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"

    timeline = client.get(f"/v1/orders/{order_id}/timeline").json()
    assert [change["toStatus"] for change in timeline["changes"]] == [
        "pending_approval",
        "approved",
        "in_progress",
        "ready",
        "completed",
    ]

    session_orders = client.get("/v1/sessions/sess-api/orders").json()["orders"]
    assert [order["status"] for order in session_orders] == ["completed"]


def test_approve_without_body_uses_default_estimate(client) -> None:
    order_id = _place(client)["orderId"]

    response = client.post(f"/v1/manager/orders/{order_id}/approve")

    assert response.status_code == 200
    assert response.json()["minutesRemaining"] in (24, 25)


def test_reject_then_cancel_is_an_invalid_transition(client) -> None:
    order_id = _place(client)["orderId"]

    rejected = client.post(f"/v1/manager/orders/{order_id}/reject", json={"reason": "closing"})
    assert rejected.status_code == 200
    assert rejected.json()["cancellationReason"] == "closing"

    response = client.post(f"/v1/manager/orders/{order_id}/cancel")
    assert response.status_code == 409
    body = response.json()
    assert body["error"]["code"] == "INVALID_ORDER_TRANSITION"
    assert body["error"]["details"]["currentStatus"] == "cancelled"
    assert body["requestId"]


def test_skipping_to_ready_is_rejected(client) -> None:
    order_id = _place(client)["orderId"]
    client.post(f"/v1/manager/orders/{order_id}/approve")

    response = client.post(f"/v1/kitchen/orders/{order_id}/status", json={"kitchenStatus": "ready"})

    assert response.status_code == 409
    assert response.json()["error"]["details"] == {
        "currentStatus": "approved",
        "currentKitchenStatus": "pending",
        "attempted": "mark_ready",
    }


def test_out_of_range_table_is_a_validation_error(client, order_repository, publisher) -> None:
    response = client.post("/v1/orders", json={**ORDER_BODY, "tableNumber": 999})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert response.json()["error"]["details"] == {"field": "tableNumber"}
    assert order_repository.list_for_customer("sess-api", limit=10) == []
    assert publisher.messages == []


def test_unknown_order_is_not_found(client) -> None:
    response = client.get("/v1/orders/ord_doesnotexist")

    assert response.status_code == 404
    assert response.json()["error"] == {
        "code": "NOT_FOUND",
        "message": "order ord_doesnotexist not found",
        "details": {"resource": "order", "id": "ord_doesnotexist"},
    }


def test_malformed_body_is_an_invalid_request(client) -> None:
    response = client.post("/v1/orders", json={"tableNumber": 4})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


def test_unknown_kitchen_status_is_a_validation_error(client) -> None:
    order_id = _place(client)["orderId"]

    response = client.post(f"/v1/kitchen/orders/{order_id}/status", json={"kitchenStatus": "burnt"})

    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"field": "kitchenStatus"}


def test_queue_limit_is_validated(client) -> None:
    response = client.get("/v1/manager/orders/pending", params={"limit": 0})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_unknown_route_uses_error_envelope(client) -> None:
    response = client.get("/v1/nothing-here")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_oversized_quantity_and_session_id_are_invalid_requests(
    client, order_repository, publisher
) -> None:
    too_many = {**ORDER_BODY, "items": [{"menuItemId": "itm_pizza", "quantity": 10_000_000}]}
    long_session = {**ORDER_BODY, "customerSessionId": "s" * 101}

    for body, field in ((too_many, "quantity"), (long_session, "customerSessionId")):
        response = client.post("/v1/orders", json=body)
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_REQUEST"
        assert error["details"]["errors"][0]["loc"][-1] == field

    assert order_repository.list_by_status(["pending_approval"], limit=10) == []
    assert publisher.messages == []


def test_kitchen_revises_expected_time(client, publisher) -> None:
    order_id = _place(client)["orderId"]
    client.post(f"/v1/manager/orders/{order_id}/approve", json={"estimatedMinutes": 10})
    publisher.messages.clear()

    response = client.put(
        f"/v1/kitchen/orders/{order_id}/expected-time", json={"estimatedMinutes": 40}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["minutesRemaining"] in (39, 40)
    assert len(publisher.messages) == 3

    timeline = client.get(f"/v1/orders/{order_id}/timeline").json()["changes"]
    assert timeline[-1]["note"] == "expected completion revised to 40 min"


def test_revising_pending_order_is_an_invalid_transition(client) -> None:
    order_id = _place(client)["orderId"]

    response = client.put(
        f"/v1/kitchen/orders/{order_id}/expected-time", json={"estimatedMinutes": 40}
    )

    assert response.status_code == 409
    assert response.json()["error"]["details"]["attempted"] == "revise_estimate"


def test_manager_lists_all_orders_with_status_filter(client) -> None:
    first = _place(client)["orderId"]
    second = _place(client)["orderId"]
    client.post(f"/v1/manager/orders/{first}/approve")

    everything = client.get("/v1/manager/orders").json()["orders"]
    approved = client.get("/v1/manager/orders", params={"status": "approved"}).json()["orders"]

    assert {order["orderId"] for order in everything} == {first, second}
    assert [order["orderId"] for order in approved] == [first]

    response = client.get("/v1/manager/orders", params={"status": "lost"})
    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"field": "status"}


def test_statistics_endpoints(client) -> None:
    order_id = _place(client)["orderId"]
    client.post(f"/v1/manager/orders/{order_id}/approve")

    manager = client.get("/v1/manager/statistics")
    kitchen = client.get("/v1/kitchen/statistics/today")

    assert manager.status_code == 200
    body = manager.json()
    assert body["today"]["orderCount"] == 1
    assert body["today"]["statusCounts"] == {"approved": 1}
    assert body["allTime"]["revenue"] == [{"amountCents": 2500, "currency": "USD"}]
    assert body["allTime"]["topItems"] == [
        {"name": "Margherita Pizza", "quantity": 2},
        {"name": "Side Salad", "quantity": 1},
    ]

    assert kitchen.status_code == 200
    assert kitchen.json()["today"]["orderCount"] == 1
    assert kitchen.json()["allTime"] is None
