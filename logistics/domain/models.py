from pydantic import BaseModel
from typing import Optional

IN_TRANSIT = "in_transit"

class GeoPoint(BaseModel):
    lat: float
    lng: float

class User(BaseModel):
    id: str
    username: str
    type: str
    created_at: int
    updated_at: Optional[int] = None

class UserLocation(BaseModel):
    id: str
    # Store key: one location per user
    user_id: str
    location: GeoPoint
    created_at: int
    updated_at: Optional[int] = None

class Order(BaseModel):
    id: str
    description: str
    weight: float
    sender: str
    receiver: str
    # Snapshots taken at creation time, never re-derived
    sender_location: GeoPoint
    receiver_location: GeoPoint
    status: str
    initial_amount: float
    created_at: int
    updated_at: Optional[int] = None

class Payment(BaseModel):
    id: str
    order_id: str
    amount: float
    status: str
    created_at: int
    updated_at: Optional[int] = None

class Shipment(BaseModel):
    id: str
    order_id: str
    driver_id: str
    last_location: GeoPoint
    created_at: int
    updated_at: Optional[int] = None
