from fastapi import APIRouter, Body, Depends, Request
from typing import Any, Dict

from logistics.application.container import Container
from logistics.application.schemas import Quote
from logistics.domain.models import Order, Payment, Shipment, User, UserLocation

def get_container(request: Request) -> Container:
    return request.app.state.container

Payload = Dict[str, Any]

users_router = APIRouter(prefix="/users", tags=["users"])

@users_router.get("/", response_model=list[User])
def list_users(c: Container = Depends(get_container)):
    return c.users.list()

@users_router.get("/{user_id}", response_model=User)
def get_user(user_id: str, c: Container = Depends(get_container)):
    return c.users.get(user_id)

@users_router.post("/", response_model=User, status_code=201)
def create_user(payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.users.create(payload)

@users_router.put("/{user_id}", response_model=User)
def update_user(user_id: str, payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.users.update(user_id, payload)

@users_router.delete("/{user_id}", response_model=User)
def delete_user(user_id: str, c: Container = Depends(get_container)):
    return c.users.delete(user_id)

locations_router = APIRouter(prefix="/locations", tags=["locations"])

@locations_router.get("/", response_model=list[UserLocation])
def list_locations(c: Container = Depends(get_container)):
    return c.locations.list()

@locations_router.get("/{user_id}", response_model=UserLocation)
def get_location(user_id: str, c: Container = Depends(get_container)):
    return c.locations.get(user_id)

@locations_router.post("/", response_model=UserLocation, status_code=201)
def create_location(payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.locations.create(payload)

@locations_router.put("/{user_id}", response_model=UserLocation)
def update_location(user_id: str, payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.locations.update(user_id, payload)

@locations_router.delete("/{user_id}", response_model=UserLocation)
def delete_location(user_id: str, c: Container = Depends(get_container)):
    return c.locations.delete(user_id)

orders_router = APIRouter(prefix="/orders", tags=["orders"])

@orders_router.get("/", response_model=list[Order])
def list_orders(c: Container = Depends(get_container)):
    return c.orders.list_orders()

@orders_router.post("/quote", response_model=Quote)
def quote_order(payload: Payload = Body(...), c: Container = Depends(get_container)):
    """Price an order between two users without creating it."""
    return c.orders.quote(payload)

@orders_router.get("/{order_id}", response_model=Order)
def get_order(order_id: str, c: Container = Depends(get_container)):
    return c.orders.get_order(order_id)

@orders_router.post("/", response_model=Order, status_code=201)
def create_order(payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.orders.create_order(payload)

@orders_router.put("/{order_id}", response_model=Order)
def update_order(order_id: str, payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.orders.update_order(order_id, payload)

@orders_router.delete("/{order_id}", response_model=Order)
def delete_order(order_id: str, c: Container = Depends(get_container)):
    return c.orders.delete_order(order_id)

payments_router = APIRouter(prefix="/payments", tags=["payments"])

@payments_router.get("/", response_model=list[Payment])
def list_payments(c: Container = Depends(get_container)):
    return c.payments.list()

@payments_router.get("/{payment_id}", response_model=Payment)
def get_payment(payment_id: str, c: Container = Depends(get_container)):
    return c.payments.get(payment_id)

@payments_router.post("/", response_model=Payment, status_code=201)
def create_payment(payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.payments.create(payload)

@payments_router.put("/{payment_id}", response_model=Payment)
def update_payment(payment_id: str, payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.payments.update(payment_id, payload)

@payments_router.delete("/{payment_id}", response_model=Payment)
def delete_payment(payment_id: str, c: Container = Depends(get_container)):
    return c.payments.delete(payment_id)

shipments_router = APIRouter(prefix="/shipments", tags=["shipments"])

@shipments_router.get("/", response_model=list[Shipment])
def list_shipments(c: Container = Depends(get_container)):
    return c.shipments.list()

@shipments_router.get("/{shipment_id}", response_model=Shipment)
def get_shipment(shipment_id: str, c: Container = Depends(get_container)):
    return c.shipments.get(shipment_id)

@shipments_router.post("/", response_model=Shipment, status_code=201)
def create_shipment(payload: Payload = Body(...), c: Container = Depends(get_container)):
    """Create a shipment; its order moves to ``in_transit``."""
    return c.shipments.create(payload)

@shipments_router.put("/{shipment_id}", response_model=Shipment)
def update_shipment(shipment_id: str, payload: Payload = Body(...), c: Container = Depends(get_container)):
    return c.shipments.update(shipment_id, payload)

@shipments_router.delete("/{shipment_id}", response_model=Shipment)
def delete_shipment(shipment_id: str, c: Container = Depends(get_container)):
    return c.shipments.delete(shipment_id)

routers = [users_router, locations_router, orders_router, payments_router, shipments_router]
