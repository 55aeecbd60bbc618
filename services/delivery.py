import json
import logging
from datetime import datetime

import aio_pika
from aio_pika import Message
from fastapi import Request
from sqlalchemy.orm import Session

from crud.crud import mark_delivered

logger = logging.getLogger(__name__)

EXCHANGE_NAME = "exchange"
EMAILS_ROUTING_KEY = "EMAILS"


class TicketDelivery:
    """
    Hands issued tickets to the email worker through RabbitMQ.

    Delivery is best-effort: the tickets are already persisted when this runs,
    so publishing problems are logged and never raised.
    """

    def __init__(self, rabbitmq_url, domain: str):
        self.rabbitmq_url = rabbitmq_url
        self.domain = domain
        self.connection = None
        self.channel = None
        self.exchange = None

    async def connect(self):
        if not self.rabbitmq_url:
            logger.warning("RABBITMQ_URL is not set, ticket emails will not be sent")
            return
        try:
            self.connection = await aio_pika.connect_robust(self.rabbitmq_url)
            self.channel = await self.connection.channel()
            self.exchange = await self.channel.declare_exchange(
                EXCHANGE_NAME, type=aio_pika.ExchangeType.TOPIC, durable=True
            )
            queue = await self.channel.declare_queue(EMAILS_ROUTING_KEY, durable=True)
            await queue.bind(self.exchange, routing_key=EMAILS_ROUTING_KEY)
        except Exception as e:
            logger.error("Could not connect to RabbitMQ: %s", e)
            self.exchange = None

    async def close(self):
        if self.channel is not None:
            await self.channel.close()
        if self.connection is not None:
            await self.connection.close()

    def ticket_url(self, token: str) -> str:
        return f"{self.domain}/ticket/{token}"

    def build_message(self, to_email: str, tickets, order_id=None) -> dict:
        return {
            "event": "tickets_issued",
            "to_email": to_email,
            "order_id": order_id,
            "tickets": [
                {
                    "token": ticket.token,
                    "seat_id": ticket.seat_id,
                    "url": self.ticket_url(ticket.token),
                }
                for ticket in tickets
            ],
            "created_at": str(datetime.now()),
        }

    async def deliver(self, to_email, tickets, order_id=None) -> bool:
        if not to_email:
            return False
        if self.exchange is None:
            logger.warning("No broker connection, skipping ticket email for order %s", order_id)
            return False
        body = self.build_message(to_email, tickets, order_id)
        try:
            await self.exchange.publish(
                routing_key=EMAILS_ROUTING_KEY,
                message=Message(body=json.dumps(body).encode()),
            )
        except Exception as e:
            logger.error("Ticket email for order %s could not be queued: %s", order_id, e)
            return False
        logger.info("Queued ticket email for order %s", order_id)
        return True


async def deliver_order_tickets(db: Session, delivery: TicketDelivery, db_order, tickets) -> bool:
    """
    Queue the ticket email for an order unless it already went out.

    A failed attempt leaves `delivered_at` unset, so the next webhook retry
    or success-page call tries again.
    """
    if db_order.delivered_at is not None or not db_order.buyer_email or not tickets:
        return False
    if not await delivery.deliver(db_order.buyer_email, tickets, order_id=db_order.id):
        return False
    mark_delivered(db, db_order)
    return True


def get_delivery(request: Request) -> TicketDelivery:
    return request.app.state.delivery
