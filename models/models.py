import uuid
from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer, String,
                        Text, UniqueConstraint)
from sqlalchemy.orm import relationship

from db.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    place = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    buyer_email = Column(String(255), nullable=True)
    buyer_name = Column(String(255), nullable=True)
    # stripe checkout session id, set once the hosted checkout exists
    session_ref = Column(String(255), nullable=True, unique=True)
    paid = Column(Boolean, nullable=False, default=False)
    cancelled = Column(Boolean, nullable=False, default=False)
    source = Column(String(16), nullable=False, default="checkout")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    # set once the ticket email has been queued
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    seats = relationship("OrderSeat", back_populates="order", order_by="OrderSeat.id")


class OrderSeat(Base):
    __tablename__ = "order_seats"
    __table_args__ = (
        UniqueConstraint("event_id", "seat_id", name="uq_order_seats_event_seat"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    seat_id = Column(String(8), nullable=False)

    order = relationship("Order", back_populates="seats")


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        UniqueConstraint("event_id", "seat_id", name="uq_tickets_event_seat"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(64), nullable=False, unique=True)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    seat_id = Column(String(8), nullable=False)
    # null for tickets sold at the box office without an order
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True, index=True)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    used_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event")
