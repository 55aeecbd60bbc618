import logging
import time
from dataclasses import dataclass

import stripe
from fastapi import Request

from catalog.seats import category_of, price_of
from errors.errors import UpstreamFailure

logger = logging.getLogger(__name__)

PAID = "paid"
UNPAID = "unpaid"


@dataclass(frozen=True)
class CheckoutSession:
    session_ref: str
    redirect_url: str


def build_line_items(seat_ids, currency: str) -> list[dict]:
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": f"Seat {seat_id}",
                    "description": f"{category_of(seat_id)} zone",
                },
                "unit_amount": price_of(seat_id),
            },
            "quantity": 1,
        }
        for seat_id in seat_ids
    ]


class StripePaymentGate:
    """Hosted checkout backed by Stripe. Built once at startup and injected into the routers."""

    def __init__(self, api_key, webhook_secret, expire_time: int):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.expire_time = expire_time

    def create_session(self, line_items, success_url, cancel_url, client_reference_id=None, customer_email=None):
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                line_items=line_items,
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                expires_at=int(time.time() + self.expire_time),
                client_reference_id=client_reference_id,
                customer_email=customer_email,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session creation failed: %s", e)
            raise UpstreamFailure("Payment provider unavailable") from e
        return CheckoutSession(session_ref=session.id, redirect_url=session.url)

    def retrieve_status(self, session_ref: str) -> str:
        try:
            session = stripe.checkout.Session.retrieve(session_ref, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            logger.info("Unknown checkout session %s: %s", session_ref, e)
            return UNPAID
        except stripe.StripeError as e:
            logger.error("Stripe session lookup failed: %s", e)
            raise UpstreamFailure("Payment provider unavailable") from e
        return PAID if session.payment_status == PAID else UNPAID

    def construct_event(self, payload: bytes, sig_header):
        """
        Verify and parse a webhook delivery.

        :raises ValueError: invalid payload.
        :raises stripe.SignatureVerificationError: invalid signature.
        """
        return stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)


def get_payment_gate(request: Request) -> StripePaymentGate:
    return request.app.state.payment_gate
