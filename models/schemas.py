from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class EventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    place: str | None = None
    image_url: str | None = None
    starts_at: datetime | None = None


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    place: str | None = None
    image_url: str | None = None
    starts_at: datetime | None = None


class SeatOut(BaseModel):
    seat_id: str
    row: str
    col: int
    category: str
    price: int
    status: str


class CheckoutRequest(BaseModel):
    event_id: str
    seats: list[str] = Field(min_length=1)
    buyer_email: EmailStr


class CheckoutResponse(BaseModel):
    order_id: str
    session_ref: str
    redirect_url: str


class CreateTicketsRequest(BaseModel):
    session_ref: str = Field(min_length=1)


class ManualTicketsRequest(BaseModel):
    event_id: str
    seats: list[str] = Field(min_length=1)
    buyer: str | None = None
    email: EmailStr | None = None


class TokensResponse(BaseModel):
    tokens: list[str]


class CheckInRequest(BaseModel):
    token: str = Field(min_length=1)


class CheckInResponse(BaseModel):
    granted: bool
    seat_id: str
    token: str
