from pydantic import BaseModel, Field, StrictStr
from typing import Annotated

from logistics.domain.models import GeoPoint

NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]
PositiveNumber = Annotated[float, Field(gt=0, allow_inf_nan=False)]
# Store keys are String(128) columns
KeyStr = Annotated[StrictStr, Field(min_length=1, max_length=128)]

class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(ge=-180, le=180, allow_inf_nan=False)

    def to_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)

class UserPayload(BaseModel):
    username: NonEmptyStr
    type: NonEmptyStr

class UserLocationCreate(BaseModel):
    user_id: KeyStr
    location: Coordinates

class UserLocationUpdate(BaseModel):
    location: Coordinates

class OrderPayload(BaseModel):
    description: NonEmptyStr
    weight: PositiveNumber
    sender: NonEmptyStr
    receiver: NonEmptyStr
    # Caller-supplied, e.g. "pending"; only "in_transit" is set by the system
    status: NonEmptyStr

class QuoteRequest(BaseModel):
    sender: NonEmptyStr
    receiver: NonEmptyStr
    weight: PositiveNumber

class Quote(BaseModel):
    sender_location: GeoPoint
    receiver_location: GeoPoint
    distance_km: float
    amount: float

class PaymentCreate(BaseModel):
    order_id: NonEmptyStr
    amount: PositiveNumber
    status: NonEmptyStr

class PaymentUpdate(BaseModel):
    amount: PositiveNumber
    status: NonEmptyStr

class ShipmentCreate(BaseModel):
    order_id: NonEmptyStr
    driver_id: NonEmptyStr
    last_location: Coordinates

class ShipmentUpdate(BaseModel):
    driver_id: NonEmptyStr
    last_location: Coordinates
