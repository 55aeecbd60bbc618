class CustomBaseError(Exception):
    """Base class for all domain errors; carries the HTTP status the handlers answer with."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def payload(self) -> dict:
        return {"detail": self.message}


class InvalidInput(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InvalidSeat(InvalidInput):
    def __init__(self, seat_id: str) -> None:
        super().__init__(f"Invalid seat: {seat_id!r}")
        self.seat_id = seat_id


class NotFound(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class EventNotFound(NotFound):
    def __init__(self, event_id: str) -> None:
        super().__init__("Event not found")
        self.event_id = event_id


class OrderNotFound(NotFound):
    def __init__(self, reference: str) -> None:
        super().__init__("Order not found")
        self.reference = reference


class TicketNotFound(NotFound):
    def __init__(self, token: str) -> None:
        super().__init__("Ticket not found")
        self.token = token


class SeatUnavailable(CustomBaseError):
    def __init__(self, seats) -> None:
        self.seats = sorted(seats)
        super().__init__(f"Seats no longer available: {', '.join(self.seats)}", 409)

    def payload(self) -> dict:
        return {"detail": self.message, "seats": self.seats}


class AlreadyUsed(CustomBaseError):
    """Raised on check-in of a consumed ticket; keeps the ticket for staff display."""

    def __init__(self, ticket) -> None:
        super().__init__("Ticket already checked in", 409)
        self.ticket = ticket

    def payload(self) -> dict:
        used_at = self.ticket.used_at
        return {
            "detail": self.message,
            "ticket": {
                "token": self.ticket.token,
                "seat_id": self.ticket.seat_id,
                "event_id": self.ticket.event_id,
                "order_id": self.ticket.order_id,
                "used": self.ticket.used,
                "used_at": used_at.isoformat() if used_at else None,
            },
        }


class OrderNotPaid(CustomBaseError):
    def __init__(self, order_id: str) -> None:
        super().__init__("Payment for this order has not been confirmed", 409)
        self.order_id = order_id


class OrderCancelled(CustomBaseError):
    def __init__(self, order_id: str) -> None:
        super().__init__("Order was released before its payment was confirmed", 409)
        self.order_id = order_id


class UpstreamFailure(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class AuthenticationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)
