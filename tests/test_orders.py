import pytest

from logistics.domain import geo
from logistics.domain.errors import LocationNotFound, NotFound, ValidationError
from logistics.domain.models import GeoPoint

def order_payload(sender, receiver, /, **overrides):
    payload = {
        "description": "box of books",
        "weight": 2,
        "sender": sender,
        "receiver": receiver,
        "status": "pending",
    }
    payload.update(overrides)
    return payload

def test_create_prices_by_distance(container, two_users):
    a, b = two_users
    order = container.orders.create_order(order_payload(a.id, b.id))
    expected = geo.distance(GeoPoint(lat=0, lng=0), GeoPoint(lat=0, lng=0.09)) * 25 * 2
    assert order.initial_amount == pytest.approx(expected)
    assert order.initial_amount == pytest.approx(500, abs=1)
    assert order.sender_location == GeoPoint(lat=0, lng=0)
    assert order.receiver_location == GeoPoint(lat=0, lng=0.09)
    assert order.status == "pending"
    assert order.updated_at is None
    assert container.orders.get_order(order.id) == order

def test_create_is_deterministic(container, two_users):
    a, b = two_users
    first = container.orders.create_order(order_payload(a.id, b.id))
    second = container.orders.create_order(order_payload(a.id, b.id))
    assert first.initial_amount == second.initial_amount
    assert first.id != second.id
    assert second.created_at > first.created_at
    assert [o.id for o in container.orders.list_orders()] == [first.id, second.id]

def test_missing_sender_location(container, two_users):
    _, b = two_users
    with pytest.raises(LocationNotFound):
        container.orders.create_order(order_payload("nobody", b.id))
    assert container.orders.list_orders() == []

def test_missing_receiver_location(container, two_users):
    a, _ = two_users
    with pytest.raises(LocationNotFound):
        container.orders.create_order(order_payload(a.id, "nobody"))

@pytest.mark.parametrize("overrides", [
    {"weight": 0},
    {"weight": -1},
    {"description": ""},
    {"status": ""},
    {"sender": ""},
])
def test_invalid_payload(container, two_users, overrides):
    a, b = two_users
    with pytest.raises(ValidationError):
        container.orders.create_order(order_payload(a.id, b.id, **overrides))
    assert container.orders.list_orders() == []

def test_missing_field(container, two_users):
    a, b = two_users
    payload = order_payload(a.id, b.id)
    del payload["status"]
    with pytest.raises(ValidationError):
        container.orders.create_order(payload)

def test_snapshots_do_not_follow_location_updates(container, two_users):
    a, b = two_users
    order = container.orders.create_order(order_payload(a.id, b.id))
    container.locations.update(b.id, {"location": {"lat": 10, "lng": 10}})
    stored = container.orders.get_order(order.id)
    assert stored.receiver_location == GeoPoint(lat=0, lng=0.09)
    assert stored.initial_amount == order.initial_amount

def test_update_does_not_reprice(container, two_users):
    a, b = two_users
    order = container.orders.create_order(order_payload(a.id, b.id))
    updated = container.orders.update_order(
        order.id, order_payload(b.id, a.id, weight=10, description="crate", status="ready")
    )
    fetched = container.orders.get_order(order.id)
    assert fetched == updated
    assert fetched.weight == 10
    assert fetched.sender == b.id
    assert fetched.description == "crate"
    assert fetched.status == "ready"
    assert fetched.initial_amount == order.initial_amount
    assert fetched.sender_location == order.sender_location
    assert fetched.updated_at > fetched.created_at

def test_update_missing_order(container, two_users):
    a, b = two_users
    with pytest.raises(NotFound):
        container.orders.update_order("missing", order_payload(a.id, b.id))

def test_update_requires_fields(container, two_users):
    a, b = two_users
    order = container.orders.create_order(order_payload(a.id, b.id))
    with pytest.raises(ValidationError):
        container.orders.update_order(order.id, {"status": "ready"})
    assert container.orders.get_order(order.id).updated_at is None

def test_on_shipment_created_sets_in_transit(container, two_users):
    a, b = two_users
    order = container.orders.create_order(order_payload(a.id, b.id))
    moved = container.orders.on_shipment_created(order.id)
    assert moved.status == "in_transit"
    assert moved.updated_at > order.created_at
    assert container.orders.get_order(order.id).status == "in_transit"

def test_on_shipment_created_missing_order(container):
    with pytest.raises(NotFound):
        container.orders.on_shipment_created("missing")

def test_delete(container, two_users):
    a, b = two_users
    order = container.orders.create_order(order_payload(a.id, b.id))
    assert container.orders.delete_order(order.id).id == order.id
    with pytest.raises(NotFound):
        container.orders.get_order(order.id)

def test_quote_matches_created_price(container, two_users):
    a, b = two_users
    quote = container.orders.quote({"sender": a.id, "receiver": b.id, "weight": 2})
    order = container.orders.create_order(order_payload(a.id, b.id))
    assert quote.amount == order.initial_amount
    assert quote.distance_km == pytest.approx(10.0075, abs=1e-3)
    # Quoting stores nothing
    assert len(container.orders.list_orders()) == 1

def test_long_distance_tier(container):
    container.locations.create({"user_id": "s", "location": {"lat": 0, "lng": 0}})
    container.locations.create({"user_id": "r", "location": {"lat": 0, "lng": 1}})
    order = container.orders.create_order(order_payload("s", "r", weight=1))
    km = geo.distance(GeoPoint(lat=0, lng=0), GeoPoint(lat=0, lng=1))
    assert km > 50
    assert order.initial_amount == pytest.approx(km * 20)

@pytest.mark.parametrize("weight", [float("inf"), float("nan"), "Infinity", "NaN"])
def test_non_finite_weight_rejected(container, two_users, weight):
    a, b = two_users
    with pytest.raises(ValidationError):
        container.orders.create_order(order_payload(a.id, b.id, weight=weight))
    assert container.orders.list_orders() == []

def test_price_overflow_rejected(container):
    container.locations.create({"user_id": "s", "location": {"lat": 0, "lng": 0}})
    container.locations.create({"user_id": "r", "location": {"lat": 0, "lng": 1}})
    with pytest.raises(ValidationError):
        container.orders.create_order(order_payload("s", "r", weight=1e308))
    with pytest.raises(ValidationError):
        container.orders.quote({"sender": "s", "receiver": "r", "weight": 1e308})
    assert container.orders.list_orders() == []
