import logging
from datetime import timedelta

from sqlalchemy import delete, false, or_, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalog.seats import normalize_seats
from errors.errors import (EventNotFound, InvalidInput, OrderNotFound,
                           SeatUnavailable)
from models.models import Event, Order, OrderSeat, utcnow

logger = logging.getLogger(__name__)

# unpaid orders stay reserved this long after the checkout session expires
RESERVATION_GRACE = timedelta(minutes=5)


def create_event(db: Session, name: str, description=None, place=None, image_url=None, starts_at=None):
    db_event = Event(name=name, description=description, place=place, image_url=image_url, starts_at=starts_at)
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event


def list_events(db: Session):
    return db.query(Event).order_by(Event.starts_at, Event.created_at).all()


def get_event(db: Session, event_id: str):
    db_event = db.query(Event).filter(Event.id == event_id).first()
    if db_event is None:
        raise EventNotFound(event_id)
    return db_event


def get_order_by_session(db: Session, session_ref: str):
    db_order = db.query(Order).filter(Order.session_ref == session_ref).first()
    if db_order is None:
        raise OrderNotFound(session_ref)
    return db_order


def _stale_cutoff(reservation_ttl: int):
    return utcnow() - timedelta(seconds=reservation_ttl) - RESERVATION_GRACE


def sold_seats(db: Session, event_id: str, reservation_ttl: int) -> set[str]:
    """
    Seats that can not be offered for a new selection.

    :param reservation_ttl: seconds an unpaid order holds its seats.
    :return: seat ids held by paid orders or by unpaid orders inside the window.
    """
    cutoff = _stale_cutoff(reservation_ttl)
    rows = db.execute(
        select(OrderSeat.seat_id)
        .join(Order, Order.id == OrderSeat.order_id)
        .where(
            OrderSeat.event_id == event_id,
            Order.cancelled == false(),
            or_(Order.paid == true(), Order.created_at >= cutoff),
        )
    )
    return {seat_id for (seat_id,) in rows}


def _cancel_orders(db: Session, order_ids) -> None:
    db.execute(
        update(Order)
        .where(Order.id.in_(order_ids), Order.paid == false())
        .values(cancelled=True)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(OrderSeat)
        .where(OrderSeat.order_id.in_(
            select(Order.id).where(Order.id.in_(order_ids), Order.cancelled == true())
        ))
        .execution_options(synchronize_session=False)
    )


def release_stale_reservations(db: Session, event_id: str, seat_ids, reservation_ttl: int) -> int:
    """Cancel expired unpaid orders that still hold any of the given seats."""
    cutoff = _stale_cutoff(reservation_ttl)
    stale_ids = list(db.scalars(
        select(Order.id)
        .join(OrderSeat, OrderSeat.order_id == Order.id)
        .where(
            OrderSeat.event_id == event_id,
            OrderSeat.seat_id.in_(list(seat_ids)),
            Order.paid == false(),
            Order.created_at < cutoff,
        )
        .distinct()
    ))
    if stale_ids:
        _cancel_orders(db, stale_ids)
        db.commit()
        logger.info("Released stale reservations %s for event %s", stale_ids, event_id)
    return len(stale_ids)


def reserve(db: Session, event_id: str, seat_ids, buyer_email, reservation_ttl: int,
            buyer_name=None, paid=False, source="checkout"):
    """
    Create an order holding the requested seats.

    The order and its seats are written in one transaction; the unique
    (event_id, seat_id) constraint on order_seats rejects a seat that another
    order already holds, concurrent requests included.

    :raises InvalidInput: if no seats are requested.
    :raises SeatUnavailable: if any seat is already held.
    """
    seats = normalize_seats(seat_ids)
    if not seats:
        raise InvalidInput("At least one seat is required")
    get_event(db, event_id)

    release_stale_reservations(db, event_id, seats, reservation_ttl)

    db_order = Order(
        event_id=event_id,
        buyer_email=buyer_email,
        buyer_name=buyer_name,
        paid=paid,
        paid_at=utcnow() if paid else None,
        source=source,
    )
    db_order.seats = [OrderSeat(event_id=event_id, seat_id=seat_id) for seat_id in seats]
    db.add(db_order)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        taken = set(seats) & sold_seats(db, event_id, reservation_ttl)
        logger.info("Reservation rejected for event %s, seats taken: %s", event_id, sorted(taken))
        raise SeatUnavailable(taken or seats)
    db.refresh(db_order)
    logger.info("Order %s reserved seats %s for event %s", db_order.id, seats, event_id)
    return db_order


def attach_session(db: Session, db_order: Order, session_ref: str):
    db_order.session_ref = session_ref
    db.commit()
    db.refresh(db_order)
    return db_order


def mark_paid(db: Session, session_ref: str):
    """
    Mark the order behind a checkout session as paid.

    Safe to repeat: only the first call flips the flag.

    :return: (order, True if this call performed the transition)
    """
    result = db.execute(
        update(Order)
        .where(Order.session_ref == session_ref, Order.paid == false())
        .values(paid=True, paid_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db_order = get_order_by_session(db, session_ref)
    transitioned = result.rowcount == 1
    if transitioned:
        logger.info("Order %s marked as paid", db_order.id)
        if db_order.cancelled:
            logger.error("Order %s was paid after its reservation was released", db_order.id)
    return db_order, transitioned


def release_order(db: Session, db_order: Order) -> bool:
    """Cancel an unpaid order and free its seats. Paid orders are left untouched."""
    if db_order.paid:
        return False
    _cancel_orders(db, [db_order.id])
    db.commit()
    db.refresh(db_order)
    logger.info("Order %s released", db_order.id)
    return db_order.cancelled


def release_session(db: Session, session_ref: str) -> bool:
    return release_order(db, get_order_by_session(db, session_ref))


def mark_delivered(db: Session, db_order: Order):
    db_order.delivered_at = utcnow()
    db.commit()
    db.refresh(db_order)
    return db_order
