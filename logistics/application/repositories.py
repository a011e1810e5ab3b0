"""
CRUD repositories for users, user locations, payments and shipments.

Each repository owns one ``RecordStore`` and validates payloads with the
pydantic schemas before anything is written. Orders live in
``OrderService`` because their creation involves pricing.
"""

import threading
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel

from logistics.core.logging_config import get_logger
from logistics.core_settings import ParentCheck
from logistics.domain.errors import DuplicateUsername, NotFound, ServiceError, ValidationError
from logistics.domain.models import Order, Payment, Shipment, User, UserLocation
from logistics.infrastructure.providers import Clock, IdGenerator
from logistics.infrastructure.store import RecordStore
from .schemas import (
    PaymentCreate,
    PaymentUpdate,
    ShipmentCreate,
    ShipmentUpdate,
    UserLocationCreate,
    UserLocationUpdate,
    UserPayload,
)

logger = get_logger(__name__)

E = TypeVar("E", bound=BaseModel)
S = TypeVar("S", bound=BaseModel)

Payload = Union[Mapping[str, Any], BaseModel]


def parse_payload(schema: Type[S], payload: Payload) -> S:
    """Validate ``payload`` against ``schema``, raising our ValidationError."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid payload: {problems}") from e


def require_id(id: str, entity: str):
    if not id:
        raise ValidationError(f"Invalid {entity} id")


class Repository(Generic[E]):
    entity_name = "Record"

    def __init__(self, store: RecordStore[E], clock: Clock, ids: IdGenerator, lock: Optional[threading.RLock] = None):
        self.store = store
        self.clock = clock
        self.ids = ids
        self.lock = lock or threading.RLock()

    def list(self) -> List[E]:
        return self.store.values()

    def find(self, id: str) -> Optional[E]:
        require_id(id, self.entity_name.lower())
        return self.store.get(id)

    def get(self, id: str) -> E:
        entity = self.find(id)
        if entity is None:
            raise NotFound(f"{self.entity_name} of id:{id} not found")
        return entity

    def delete(self, id: str) -> E:
        require_id(id, self.entity_name.lower())
        with self.lock:
            removed = self.store.remove(id)
        if removed is None:
            raise NotFound(f"{self.entity_name} of id:{id} not found")
        logger.info(f"{self.entity_name} deleted", extra={"extra_fields": {"id": id}})
        return removed


class UserRepository(Repository[User]):
    entity_name = "User"

    def _ensure_username_free(self, username: str, exclude_id: Optional[str] = None):
        for user in self.store.values():
            if user.username == username and user.id != exclude_id:
                raise DuplicateUsername(f"User with username '{username}' already exists")

    def create(self, payload: Payload) -> User:
        data = parse_payload(UserPayload, payload)
        with self.lock:
            self._ensure_username_free(data.username)
            user = User(id=self.ids.new_id(), username=data.username, type=data.type, created_at=self.clock.now())
            self.store.insert(user.id, user)
        logger.info("User created", extra={"extra_fields": {"id": user.id, "username": user.username}})
        return user

    def update(self, id: str, payload: Payload) -> User:
        require_id(id, "user")
        data = parse_payload(UserPayload, payload)
        with self.lock:
            user = self.get(id)
            self._ensure_username_free(data.username, exclude_id=id)
            updated = user.model_copy(update={
                "username": data.username,
                "type": data.type,
                "updated_at": self.clock.now(),
            })
            self.store.insert(id, updated)
        return updated


class UserLocationRepository(Repository[UserLocation]):
    """Locations keyed by ``user_id``; at most one record per user."""
    entity_name = "UserLocation"

    def get(self, user_id: str) -> UserLocation:
        location = self.find(user_id)
        if location is None:
            raise NotFound(f"Location for user of id:{user_id} not found")
        return location

    def delete(self, user_id: str) -> UserLocation:
        require_id(user_id, "user")
        with self.lock:
            removed = self.store.remove(user_id)
        if removed is None:
            raise NotFound(f"Location for user of id:{user_id} not found")
        return removed

    def create(self, payload: Payload) -> UserLocation:
        # No check that the user exists; a second create replaces the first
        data = parse_payload(UserLocationCreate, payload)
        location = UserLocation(
            id=self.ids.new_id(),
            user_id=data.user_id,
            location=data.location.to_point(),
            created_at=self.clock.now(),
        )
        with self.lock:
            self.store.insert(location.user_id, location)
        logger.info("User location stored", extra={"extra_fields": {"user_id": location.user_id}})
        return location

    def update(self, user_id: str, payload: Payload) -> UserLocation:
        require_id(user_id, "user")
        data = parse_payload(UserLocationUpdate, payload)
        with self.lock:
            location = self.get(user_id)
            updated = location.model_copy(update={
                "location": data.location.to_point(),
                "updated_at": self.clock.now(),
            })
            self.store.insert(user_id, updated)
        return updated


class PaymentRepository(Repository[Payment]):
    entity_name = "Payment"

    def __init__(self, store, clock, ids, orders: RecordStore[Order],
                 order_check: ParentCheck = "permissive", lock=None):
        super().__init__(store, clock, ids, lock)
        self.orders = orders
        self.order_check = order_check

    def create(self, payload: Payload) -> Payment:
        data = parse_payload(PaymentCreate, payload)
        with self.lock:
            if self.orders.get(data.order_id) is None:
                if self.order_check == "strict":
                    raise NotFound(f"Order of id:{data.order_id} not found")
                logger.warning(
                    "Payment references unknown order",
                    extra={"extra_fields": {"order_id": data.order_id}},
                )
            payment = Payment(
                id=self.ids.new_id(),
                order_id=data.order_id,
                amount=data.amount,
                status=data.status,
                created_at=self.clock.now(),
            )
            self.store.insert(payment.id, payment)
        logger.info("Payment created", extra={"extra_fields": {"id": payment.id, "order_id": payment.order_id}})
        return payment

    def update(self, id: str, payload: Payload) -> Payment:
        require_id(id, "payment")
        data = parse_payload(PaymentUpdate, payload)
        with self.lock:
            payment = self.get(id)
            updated = payment.model_copy(update={
                "amount": data.amount,
                "status": data.status,
                "updated_at": self.clock.now(),
            })
            self.store.insert(id, updated)
        return updated


class ShipmentRepository(Repository[Shipment]):
    """
    Shipments for orders.

    Creating a shipment moves its order to ``in_transit`` through
    ``OrderService.on_shipment_created`` once the shipment itself is stored.
    """
    entity_name = "Shipment"

    def __init__(self, store, clock, ids, order_service,
                 order_check: ParentCheck = "strict", lock=None):
        super().__init__(store, clock, ids, lock)
        self.order_service = order_service
        self.order_check = order_check

    def create(self, payload: Payload) -> Shipment:
        data = parse_payload(ShipmentCreate, payload)
        with self.lock:
            order_exists = self.order_service.find_order(data.order_id) is not None
            if not order_exists:
                if self.order_check == "strict":
                    raise NotFound(f"Order of id:{data.order_id} not found")
                logger.warning(
                    "Shipment references unknown order",
                    extra={"extra_fields": {"order_id": data.order_id}},
                )
            shipment = Shipment(
                id=self.ids.new_id(),
                order_id=data.order_id,
                driver_id=data.driver_id,
                last_location=data.last_location.to_point(),
                created_at=self.clock.now(),
            )
            self.store.insert(shipment.id, shipment)
            if order_exists:
                try:
                    self.order_service.on_shipment_created(shipment.order_id)
                except ServiceError:
                    # Order unchanged, so the shipment must not stay either
                    self.store.remove(shipment.id)
                    raise
        logger.info(
            "Shipment created",
            extra={"extra_fields": {"id": shipment.id, "order_id": shipment.order_id, "driver_id": shipment.driver_id}},
        )
        return shipment

    def update(self, id: str, payload: Payload) -> Shipment:
        require_id(id, "shipment")
        data = parse_payload(ShipmentUpdate, payload)
        with self.lock:
            shipment = self.get(id)
            updated = shipment.model_copy(update={
                "driver_id": data.driver_id,
                "last_location": data.last_location.to_point(),
                "updated_at": self.clock.now(),
            })
            self.store.insert(id, updated)
        return updated
