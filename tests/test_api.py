def create_user(client, username):
    resp = client.post('/users/', json={"username": username, "type": "customer"})
    assert resp.status_code == 201
    return resp.json()

def place(client, user_id, lat, lng):
    resp = client.post('/locations/', json={"user_id": user_id, "location": {"lat": lat, "lng": lng}})
    assert resp.status_code == 201
    return resp.json()

def test_list_users_empty(client):
    resp = client.get('/users/')
    assert resp.status_code == 200
    assert resp.json() == []

def test_user_crud(client):
    user = create_user(client, "alice")
    assert client.get(f"/users/{user['id']}").json() == user

    resp = client.put(f"/users/{user['id']}", json={"username": "alicia", "type": "driver"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "alicia"
    assert resp.json()["updated_at"] > resp.json()["created_at"]

    assert client.delete(f"/users/{user['id']}").status_code == 200
    resp = client.get(f"/users/{user['id']}")
    assert resp.status_code == 404
    assert resp.json()["kind"] == "NotFound"

def test_duplicate_username_conflict(client):
    create_user(client, "alice")
    resp = client.post('/users/', json={"username": "alice", "type": "customer"})
    assert resp.status_code == 409
    assert resp.json()["kind"] == "DuplicateUsername"

def test_validation_error_body(client):
    resp = client.post('/users/', json={"username": ""})
    assert resp.status_code == 400
    body = resp.json()
    assert body["kind"] == "ValidationError"
    assert "username" in body["detail"]

def test_order_shipment_flow(client):
    a = create_user(client, "alice")
    b = create_user(client, "bob")
    place(client, a["id"], 0, 0)
    place(client, b["id"], 0, 0.09)

    quote = client.post('/orders/quote', json={"sender": a["id"], "receiver": b["id"], "weight": 2})
    assert quote.status_code == 200

    resp = client.post('/orders/', json={
        "description": "books", "weight": 2, "sender": a["id"], "receiver": b["id"], "status": "pending",
    })
    assert resp.status_code == 201
    order = resp.json()
    assert abs(order["initial_amount"] - 500) < 1
    assert order["initial_amount"] == quote.json()["amount"]

    resp = client.post('/payments/', json={"order_id": order["id"], "amount": order["initial_amount"], "status": "paid"})
    assert resp.status_code == 201

    resp = client.post('/shipments/', json={
        "order_id": order["id"], "driver_id": "driver-1", "last_location": {"lat": 0, "lng": 0.01},
    })
    assert resp.status_code == 201

    order = client.get(f"/orders/{order['id']}").json()
    assert order["status"] == "in_transit"
    assert order["updated_at"] is not None

def test_order_without_locations(client):
    a = create_user(client, "alice")
    b = create_user(client, "bob")
    resp = client.post('/orders/', json={
        "description": "books", "weight": 2, "sender": a["id"], "receiver": b["id"], "status": "pending",
    })
    assert resp.status_code == 422
    assert resp.json()["kind"] == "LocationNotFound"

def test_shipment_for_missing_order(client):
    resp = client.post('/shipments/', json={
        "order_id": "missing", "driver_id": "driver-1", "last_location": {"lat": 0, "lng": 0},
    })
    assert resp.status_code == 404
    assert client.get('/shipments/').json() == []

def test_request_id_echoed(client):
    resp = client.get('/users/', headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"

def test_health_endpoints(client):
    assert client.get('/health').json()["status"] == "pass"
    assert client.get('/health/live').json() == {"status": "alive"}
    ready = client.get('/health/ready')
    assert ready.json()["checks"]["database:connectivity"]["status"] == "pass"
    startup = client.get('/health/startup').json()
    assert startup["checks"]["database:migrations"]["status"] in ("pass", "warn")

def test_metrics_endpoint(client):
    data = client.get('/metrics').json()
    assert data["service"] == "logistics-service"
    assert "uptime_seconds" in data

def test_non_object_body_uses_error_format(client):
    resp = client.post('/users/', json=["alice"])
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"
    assert client.get('/users/').json() == []

def test_infinite_weight_rejected(client):
    a = create_user(client, "alice")
    b = create_user(client, "bob")
    place(client, a["id"], 0, 0)
    place(client, b["id"], 0, 0.09)
    resp = client.post('/orders/', json={
        "description": "books", "weight": "Infinity", "sender": a["id"], "receiver": b["id"], "status": "pending",
    })
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"
    assert client.get('/orders/').json() == []
