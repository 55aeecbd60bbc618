import logging
import secrets

from sqlalchemy import false, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crud.crud import reserve
from errors.errors import (AlreadyUsed, InvalidInput, OrderNotPaid,
                           TicketNotFound)
from models.models import Order, Ticket, utcnow

logger = logging.getLogger(__name__)


def new_token() -> str:
    return secrets.token_urlsafe(24)


def get_ticket(db: Session, token: str):
    return db.query(Ticket).filter(Ticket.token == token).first()


def tickets_for_order(db: Session, db_order: Order) -> dict[str, Ticket]:
    rows = db.query(Ticket).filter(Ticket.event_id == db_order.event_id,
                                   Ticket.seat_id.in_([seat.seat_id for seat in db_order.seats]))
    return {ticket.seat_id: ticket for ticket in rows}


def issue_tickets(db: Session, db_order: Order):
    """
    Mint one ticket per seat of a paid order.

    Seats that already carry a ticket keep it, so retries return the same
    tokens. The unique (event_id, seat_id) constraint on tickets settles races
    between concurrent issuers.

    :return: (tickets in seat order, True if any ticket was minted by this call)
    """
    if not db_order.paid:
        raise OrderNotPaid(db_order.id)
    seat_ids = [seat.seat_id for seat in db_order.seats]
    if not seat_ids:
        raise InvalidInput("Order has no seats")

    existing = tickets_for_order(db, db_order)
    missing = [seat_id for seat_id in seat_ids if seat_id not in existing]
    if not missing:
        return [existing[seat_id] for seat_id in seat_ids], False

    minted = [
        Ticket(token=new_token(), event_id=db_order.event_id, seat_id=seat_id, order_id=db_order.id, used=False)
        for seat_id in missing
    ]
    db.add_all(minted)
    try:
        db.commit()
    except IntegrityError:
        # another request issued these seats first
        db.rollback()
        existing = tickets_for_order(db, db_order)
        if any(seat_id not in existing for seat_id in seat_ids):
            raise
        logger.info("Tickets for order %s were issued concurrently", db_order.id)
        return [existing[seat_id] for seat_id in seat_ids], False

    for ticket in minted:
        existing[ticket.seat_id] = ticket
    logger.info("Issued %d tickets for order %s", len(minted), db_order.id)
    return [existing[seat_id] for seat_id in seat_ids], True


def issue_manual_tickets(db: Session, event_id: str, seat_ids, buyer_name, buyer_email, reservation_ttl: int):
    """Box office sale: reserve the seats as an already paid order and issue its tickets."""
    db_order = reserve(
        db,
        event_id,
        seat_ids,
        buyer_email,
        reservation_ttl,
        buyer_name=buyer_name,
        paid=True,
        source="manual",
    )
    tickets, _ = issue_tickets(db, db_order)
    return db_order, tickets


def check_in(db: Session, token: str):
    """
    Consume a ticket at the door.

    The unused -> used flip is one conditional update, so exactly one of
    any number of concurrent callers gets the ticket.

    :raises TicketNotFound: unknown token.
    :raises AlreadyUsed: the ticket was consumed before.
    """
    result = db.execute(
        update(Ticket)
        .where(Ticket.token == token, Ticket.used == false())
        .values(used=True, used_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    ticket = get_ticket(db, token)
    if ticket is None:
        raise TicketNotFound(token)
    if result.rowcount != 1:
        logger.warning("Rejected check-in of used ticket for seat %s", ticket.seat_id)
        raise AlreadyUsed(ticket)
    logger.info("Ticket for seat %s checked in", ticket.seat_id)
    return ticket
