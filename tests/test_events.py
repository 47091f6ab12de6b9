import pytest

from core import events
from models.orderModels import Order


@pytest.fixture
def received():
    """Collects (table, event_type, record) triples and unsubscribes afterwards."""
    seen = []
    unsubscribers = []

    def _listen(table, **kwargs):
        def handler(event_type, record):
            seen.append((table, event_type, record))
        unsubscribers.append(events.subscribe(table, handler, **kwargs))
        return seen

    yield _listen

    for unsubscribe in unsubscribers:
        unsubscribe()


def test_subscribe_filters_on_columns(received):
    seen = received("orders", buyer_id=1)

    events.publish("orders", events.INSERT, {"id": 1, "buyer_id": 1})
    events.publish("orders", events.INSERT, {"id": 2, "buyer_id": 2})

    assert [record["id"] for _, _, record in seen] == [1]


def test_subscribe_filters_on_event_type(received):
    seen = received("orders", event_types=[events.UPDATE])

    events.publish("orders", events.INSERT, {"id": 1})
    events.publish("orders", events.UPDATE, {"id": 1, "status": "confirmed"})

    assert [event_type for _, event_type, _ in seen] == [events.UPDATE]


def test_unsubscribe_stops_delivery():
    seen = []
    unsubscribe = events.subscribe("messages", lambda event_type, record: seen.append(record))

    events.publish("messages", events.INSERT, {"id": 1})
    unsubscribe()
    events.publish("messages", events.INSERT, {"id": 2})

    assert seen == [{"id": 1}]


def test_tables_are_independent(received):
    seen = received("reviews")
    events.publish("orders", events.INSERT, {"id": 1})
    assert seen == []


def test_order_lifecycle_is_published(client, buyer, farmer, listing, order_form, auth_headers, received):
    seen = received("orders", farmer_id=farmer.id)

    client.post("/api/orders/create", data=order_form, headers=auth_headers(buyer))
    order = Order.query.one()
    client.post(f"/api/orders/update-status?id={order.id}", json={"status": "confirmed"},
                headers=auth_headers(farmer))

    assert [(event_type, record["status"]) for _, event_type, record in seen] == [
        (events.INSERT, "pending"),
        (events.UPDATE, "confirmed"),
    ]


def test_payment_is_published(client, buyer, listing, make_order, auth_headers, received):
    order = make_order(listing, buyer)
    seen = received("transactions", order_id=order.id)

    client.post(f"/api/orders/record-payment?id={order.id}", json={"amount": 100},
                headers=auth_headers(buyer))

    assert len(seen) == 1
    assert seen[0][1] == events.INSERT
    assert seen[0][2]["status"] == "pending"


def test_failing_subscriber_does_not_break_request(client, buyer, order_form, auth_headers):
    def broken(event_type, record):
        raise RuntimeError("subscriber is down")

    unsubscribe = events.subscribe("orders", broken)
    try:
        resp = client.post("/api/orders/create", data=order_form, headers=auth_headers(buyer))
    finally:
        unsubscribe()

    assert resp.status_code == 303
    assert Order.query.count() == 1


def test_confirmation_publishes_transaction_update(client, buyer, farmer, listing, make_order, auth_headers, received):
    order = make_order(listing, buyer)
    client.post(f"/api/orders/record-payment?id={order.id}", json={"amount": 425},
                headers=auth_headers(buyer))
    seen = received("transactions", event_types=[events.UPDATE])

    transaction_id = client.get(f"/api/orders/{order.id}", headers=auth_headers(farmer)).get_json()["transactions"][0]["id"]
    client.post(f"/api/orders/confirm-payment?id={order.id}",
                json={"transaction_id": transaction_id, "status": "paid"}, headers=auth_headers(farmer))

    assert len(seen) == 1
    _, event_type, record = seen[0]
    assert event_type == events.UPDATE
    assert record["id"] == transaction_id
    assert record["status"] == "paid"


def test_review_is_published(client, buyer, listing, make_order, auth_headers, received):
    order = make_order(listing, buyer, status="completed")
    seen = received("reviews", farmer_id=listing.farmer_id)

    client.post("/api/reviews/create", headers=auth_headers(buyer), json={
        "order_id": order.id,
        "farmer_id": order.farmer_id,
        "listing_id": order.listing_id,
        "rating": 4,
        "title": "Good test weight",
        "content": "Sixty pounds a bushel as listed.",
    })

    assert len(seen) == 1
    _, event_type, record = seen[0]
    assert event_type == events.INSERT
    assert record["order_id"] == order.id
    assert record["rating"] == 4
    assert record["id"] is not None


def test_messages_are_published(client, buyer, farmer, listing, auth_headers, received):
    seen = received("messages", event_types=[events.INSERT])

    client.post("/api/messages/create", headers=auth_headers(buyer), data={
        "listing_id": str(listing.id),
        "farmer_id": str(farmer.id),
        "subject": "Delivery window",
        "message": "Can you deliver in March?",
    })
    conversation_id = seen[0][2]["conversation_id"]
    client.post(f"/api/messages/reply?conversation_id={conversation_id}",
                data={"message": "Second week works"}, headers=auth_headers(farmer))

    assert [(record["sender_id"], record["content"]) for _, _, record in seen] == [
        (buyer.id, "Can you deliver in March?"),
        (farmer.id, "Second week works"),
    ]
    assert all(record["id"] is not None for _, _, record in seen)
