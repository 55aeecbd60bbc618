import logging
import sys

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from auth.auth import get_current_staff
from config.config import Settings, get_settings
from crud import crud
from crud.tickets import check_in, get_ticket, issue_manual_tickets, issue_tickets
from db.database import get_db
from errors.errors import OrderCancelled
from models.schemas import (CheckInRequest, CheckInResponse,
                            CreateTicketsRequest, ManualTicketsRequest,
                            TokensResponse)
from services.delivery import (TicketDelivery, deliver_order_tickets,
                               get_delivery)
from services.payment_gate import PAID, StripePaymentGate, get_payment_gate

router = APIRouter(
    prefix="/tickets",
    tags=["Tickets"],
)
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
logger.addHandler(logging.StreamHandler(sys.stdout))


@router.post("/create", response_model=TokensResponse)
async def create_tickets(
        body: CreateTicketsRequest,
        db: Session = Depends(get_db),
        gate: StripePaymentGate = Depends(get_payment_gate),
        delivery: TicketDelivery = Depends(get_delivery),
):
    """
    Called from the checkout success page. The redirect alone proves nothing,
    so an order still unpaid here is re-checked with Stripe before issuing.
    """
    db_order = crud.get_order_by_session(db, body.session_ref)
    if not db_order.paid and gate.retrieve_status(body.session_ref) == PAID:
        db_order, _ = crud.mark_paid(db, body.session_ref)
    if db_order.cancelled:
        raise OrderCancelled(db_order.id)

    tickets, _ = issue_tickets(db, db_order)
    await deliver_order_tickets(db, delivery, db_order, tickets)
    return TokensResponse(tokens=[ticket.token for ticket in tickets])


@router.post("/checkin", response_model=CheckInResponse)
def checkin_ticket(body: CheckInRequest, db: Session = Depends(get_db)):
    ticket = check_in(db, body.token)
    return CheckInResponse(granted=True, seat_id=ticket.seat_id, token=ticket.token)


@router.post("/manual-create", response_model=TokensResponse)
async def manual_create_tickets(
        body: ManualTicketsRequest,
        db: Session = Depends(get_db),
        delivery: TicketDelivery = Depends(get_delivery),
        settings: Settings = Depends(get_settings),
        staff: str = Depends(get_current_staff),
):
    db_order, tickets = issue_manual_tickets(
        db, body.event_id, body.seats, body.buyer, body.email, settings.expire_time
    )
    logger.info("Staff %s issued %d tickets for order %s", staff, len(tickets), db_order.id)
    await deliver_order_tickets(db, delivery, db_order, tickets)
    return TokensResponse(tokens=[ticket.token for ticket in tickets])


@router.get("/{token}")
def lookup_ticket(token: str, db: Session = Depends(get_db)):
    ticket = get_ticket(db, token)
    if ticket is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"valid": False, "reason": "No ticket found for this token"},
        )
    if ticket.used:
        return {"valid": False, "reason": "This ticket has already been used", "seat_id": ticket.seat_id}

    event = ticket.event
    return {
        "valid": True,
        "token": ticket.token,
        "seat_id": ticket.seat_id,
        "event": {
            "id": event.id,
            "name": event.name,
            "place": event.place,
            "starts_at": event.starts_at.isoformat() if event.starts_at else None,
            "image_url": event.image_url,
        },
    }
