import math
import threading
from typing import List, Optional, Tuple

from logistics.core.logging_config import get_logger
from logistics.domain import geo
from logistics.domain.errors import LocationNotFound, NotFound, ValidationError
from logistics.domain.models import IN_TRANSIT, GeoPoint, Order
from logistics.domain.pricing import PricingPolicy
from logistics.infrastructure.providers import Clock, IdGenerator
from logistics.infrastructure.store import RecordStore
from .repositories import Payload, UserLocationRepository, parse_payload, require_id
from .schemas import OrderPayload, Quote, QuoteRequest

logger = get_logger(__name__)

class OrderService:
    """
    Order lifecycle: priced creation, plain updates and the
    ``in_transit`` transition triggered by shipment creation.
    """

    def __init__(
        self,
        orders: RecordStore[Order],
        locations: UserLocationRepository,
        clock: Clock,
        ids: IdGenerator,
        pricing: Optional[PricingPolicy] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self.orders = orders
        self.locations = locations
        self.clock = clock
        self.ids = ids
        self.pricing = pricing or PricingPolicy()
        self.lock = lock or threading.RLock()

    def _resolve_locations(self, sender: str, receiver: str) -> Tuple[GeoPoint, GeoPoint]:
        sender_location = self.locations.find(sender)
        if sender_location is None:
            raise LocationNotFound(f"Location for sender of id:{sender} not found")
        receiver_location = self.locations.find(receiver)
        if receiver_location is None:
            raise LocationNotFound(f"Location for receiver of id:{receiver} not found")
        # Copies, so later location updates never reach stored orders
        return sender_location.location.model_copy(), receiver_location.location.model_copy()

    def _price(self, sender: str, receiver: str, weight: float) -> Quote:
        sender_point, receiver_point = self._resolve_locations(sender, receiver)
        distance_km = geo.distance(sender_point, receiver_point)
        amount = self.pricing.price(distance_km, weight)
        if not math.isfinite(amount):
            raise ValidationError(f"Invalid payload: weight {weight} gives a price out of range")
        return Quote(
            sender_location=sender_point,
            receiver_location=receiver_point,
            distance_km=distance_km,
            amount=amount,
        )

    def quote(self, payload: Payload) -> Quote:
        """Price a prospective order without storing anything."""
        data = parse_payload(QuoteRequest, payload)
        return self._price(data.sender, data.receiver, data.weight)

    def list_orders(self) -> List[Order]:
        return self.orders.values()

    def find_order(self, order_id: str) -> Optional[Order]:
        require_id(order_id, "order")
        return self.orders.get(order_id)

    def get_order(self, order_id: str) -> Order:
        order = self.find_order(order_id)
        if order is None:
            raise NotFound(f"Order of id:{order_id} not found")
        return order

    def create_order(self, payload: Payload) -> Order:
        data = parse_payload(OrderPayload, payload)
        with self.lock:
            quote = self._price(data.sender, data.receiver, data.weight)
            order = Order(
                id=self.ids.new_id(),
                description=data.description,
                weight=data.weight,
                sender=data.sender,
                receiver=data.receiver,
                sender_location=quote.sender_location,
                receiver_location=quote.receiver_location,
                status=data.status,
                initial_amount=quote.amount,
                created_at=self.clock.now(),
            )
            self.orders.insert(order.id, order)
        logger.info(
            "Order created",
            extra={"extra_fields": {
                "id": order.id,
                "distance_km": round(quote.distance_km, 3),
                "initial_amount": order.initial_amount,
            }},
        )
        return order

    def update_order(self, order_id: str, payload: Payload) -> Order:
        require_id(order_id, "order")
        data = parse_payload(OrderPayload, payload)
        with self.lock:
            order = self.get_order(order_id)
            # Pricing and location snapshots stay as computed at creation
            updated = order.model_copy(update={
                "description": data.description,
                "weight": data.weight,
                "sender": data.sender,
                "receiver": data.receiver,
                "status": data.status,
                "updated_at": self.clock.now(),
            })
            self.orders.insert(order_id, updated)
        return updated

    def delete_order(self, order_id: str) -> Order:
        require_id(order_id, "order")
        with self.lock:
            removed = self.orders.remove(order_id)
        if removed is None:
            raise NotFound(f"Order of id:{order_id} not found")
        logger.info("Order deleted", extra={"extra_fields": {"id": order_id}})
        return removed

    def on_shipment_created(self, order_id: str) -> Order:
        """Move the order to ``in_transit``. Invoked by the shipment repository."""
        with self.lock:
            order = self.get_order(order_id)
            updated = order.model_copy(update={"status": IN_TRANSIT, "updated_at": self.clock.now()})
            self.orders.insert(order_id, updated)
        logger.info(
            "Order status changed",
            extra={"extra_fields": {"id": order_id, "from": order.status, "to": IN_TRANSIT}},
        )
        return updated
