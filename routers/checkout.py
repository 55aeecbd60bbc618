import logging
import sys

import stripe
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from starlette.responses import Response

from config.config import Settings, get_settings
from crud import crud
from crud.tickets import issue_tickets
from db.database import get_db
from errors.errors import OrderNotFound, UpstreamFailure
from models.schemas import CheckoutRequest, CheckoutResponse
from services.delivery import (TicketDelivery, deliver_order_tickets,
                               get_delivery)
from services.payment_gate import (StripePaymentGate, build_line_items,
                                   get_payment_gate)

router = APIRouter(
    tags=["Checkout"],
)
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
logger.addHandler(logging.StreamHandler(sys.stdout))


@router.post("/checkout", status_code=status.HTTP_200_OK, response_model=CheckoutResponse)
def create_checkout(
        body: CheckoutRequest,
        db: Session = Depends(get_db),
        gate: StripePaymentGate = Depends(get_payment_gate),
        settings: Settings = Depends(get_settings),
):
    db_order = crud.reserve(db, body.event_id, body.seats, body.buyer_email, settings.expire_time)
    seat_ids = [seat.seat_id for seat in db_order.seats]

    try:
        checkout_session = gate.create_session(
            build_line_items(seat_ids, settings.currency),
            success_url=settings.domain + "/success?session_id={CHECKOUT_SESSION_ID}",
            cancel_url=f"{settings.domain}/events/{body.event_id}",
            client_reference_id=db_order.id,
            customer_email=body.buyer_email,
        )
    except UpstreamFailure:
        crud.release_order(db, db_order)
        raise

    crud.attach_session(db, db_order, checkout_session.session_ref)
    logger.info("Checkout session %s created for order %s", checkout_session.session_ref, db_order.id)
    return CheckoutResponse(
        order_id=db_order.id,
        session_ref=checkout_session.session_ref,
        redirect_url=checkout_session.redirect_url,
    )


@router.get("/session")
def get_session_status(session_id: str, gate: StripePaymentGate = Depends(get_payment_gate)):
    return {"session_ref": session_id, "payment_status": gate.retrieve_status(session_id)}


@router.post("/webhooks/checkout")
async def webhooks(
        request: Request,
        db: Session = Depends(get_db),
        gate: StripePaymentGate = Depends(get_payment_gate),
        delivery: TicketDelivery = Depends(get_delivery),
):
    """
    Stripe delivers these at least once. Completed sessions mark the order as
    paid and issue its tickets; expired sessions give the seats back.
    """
    payload = await request.body()
    sig_header = request.headers.get("Stripe-Signature")
    if not sig_header:
        return Response(status_code=status.HTTP_400_BAD_REQUEST, content="Missing Stripe signature")

    try:
        event = gate.construct_event(payload, sig_header)
    except ValueError:
        # Invalid payload
        return Response(status_code=status.HTTP_400_BAD_REQUEST)
    except stripe.SignatureVerificationError as e:
        logger.error("Error verifying webhook signature: {}".format(str(e)))
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    session_ref = event.data.object.id

    if event.type == "checkout.session.completed":
        logger.info("Checkout session completed")
        try:
            db_order, _ = crud.mark_paid(db, session_ref)
        except OrderNotFound:
            logger.warning("No order for completed session %s", session_ref)
            return Response(status_code=status.HTTP_200_OK)
        if db_order.cancelled:
            # seats were released before the payment landed, needs a refund by hand
            return Response(status_code=status.HTTP_200_OK)
        tickets, _ = issue_tickets(db, db_order)
        await deliver_order_tickets(db, delivery, db_order, tickets)

    elif event.type == "checkout.session.expired":
        logger.info("Checkout session expired")
        try:
            crud.release_session(db, session_ref)
        except OrderNotFound:
            logger.warning("No order for expired session %s", session_ref)

    else:
        logger.info("Unhandled event type {}".format(event.type))

    return Response(status_code=status.HTTP_200_OK)
