"""Builds the stores, repositories and order service for one running app."""

import threading
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from logistics.core_settings import Settings
from logistics.domain.models import Order, Payment, Shipment, User, UserLocation
from logistics.domain.pricing import PricingPolicy
from logistics.infrastructure.providers import Clock, IdGenerator, SystemClock, UuidGenerator
from logistics.infrastructure.store import RecordStore
from .repositories import PaymentRepository, ShipmentRepository, UserLocationRepository, UserRepository
from .service import OrderService


@dataclass
class Container:
    users: UserRepository
    locations: UserLocationRepository
    orders: OrderService
    payments: PaymentRepository
    shipments: ShipmentRepository
    engine: Optional[Engine] = None


def build_container(
    session_factory: sessionmaker,
    settings: Settings,
    clock: Optional[Clock] = None,
    ids: Optional[IdGenerator] = None,
    pricing: Optional[PricingPolicy] = None,
    engine: Optional[Engine] = None,
) -> Container:
    clock = clock or SystemClock()
    ids = ids or UuidGenerator()
    # Serialises read-then-write sequences across every collection
    lock = threading.RLock()

    order_store = RecordStore(session_factory, "orders", Order)
    users = UserRepository(RecordStore(session_factory, "users", User), clock, ids, lock)
    locations = UserLocationRepository(RecordStore(session_factory, "user_locations", UserLocation), clock, ids, lock)
    orders = OrderService(order_store, locations, clock, ids, pricing=pricing, lock=lock)
    payments = PaymentRepository(
        RecordStore(session_factory, "payments", Payment), clock, ids, order_store,
        order_check=settings.PAYMENT_ORDER_CHECK, lock=lock,
    )
    shipments = ShipmentRepository(
        RecordStore(session_factory, "shipments", Shipment), clock, ids, orders,
        order_check=settings.SHIPMENT_ORDER_CHECK, lock=lock,
    )
    return Container(
        users=users,
        locations=locations,
        orders=orders,
        payments=payments,
        shipments=shipments,
        engine=engine,
    )
