"""Seat catalog for the venue layout.

Seats are identified as "<row>-<column>", e.g. "A-5". The row decides the
category and the category decides the price (minor currency units).
"""

from dataclasses import dataclass

from errors.errors import InvalidSeat

VIP = "VIP"
PREFERENTE = "Preferente"
GENERAL = "General"

ROW_LAYOUT: tuple[tuple[str, int], ...] = (
    ("A", 11),
    ("B", 13),
    ("C", 14),
    ("D", 13),
    ("E", 14),
    ("F", 13),
    ("G", 14),
    ("H", 13),
    ("I", 14),
    ("J", 13),
    ("K", 14),
)
COLUMNS_BY_ROW = dict(ROW_LAYOUT)

PRICES = {
    VIP: 38000,
    PREFERENTE: 36000,
    GENERAL: 35000,
}


@dataclass(frozen=True)
class Seat:
    id: str
    row: str
    col: int

    @property
    def category(self) -> str:
        return _category_for_row(self.row)

    @property
    def price(self) -> int:
        return PRICES[self.category]


def _category_for_row(row: str) -> str:
    if row == "A":
        return VIP
    if row in ("B", "C"):
        return PREFERENTE
    return GENERAL


def _split(seat_id: str) -> tuple[str, str]:
    if not isinstance(seat_id, str) or seat_id.count("-") != 1:
        raise InvalidSeat(seat_id)
    row, col = seat_id.split("-")
    return row.strip().upper(), col.strip()


def parse_seat(seat_id: str) -> Seat:
    """Validate a seat id against the layout and return the Seat."""
    row, col = _split(seat_id)
    if row not in COLUMNS_BY_ROW or not col.isdigit():
        raise InvalidSeat(seat_id)
    column = int(col)
    if not 1 <= column <= COLUMNS_BY_ROW[row]:
        raise InvalidSeat(seat_id)
    return Seat(id=f"{row}-{column}", row=row, col=column)


def category_of(seat_id: str) -> str:
    row, _ = _split(seat_id)
    if row not in COLUMNS_BY_ROW:
        raise InvalidSeat(seat_id)
    return _category_for_row(row)


def price_of(seat_id: str) -> int:
    return PRICES[category_of(seat_id)]


def all_seats():
    """Every seat id in row-major order; each call starts a fresh iteration."""
    for row, columns in ROW_LAYOUT:
        for col in range(1, columns + 1):
            yield f"{row}-{col}"


def normalize_seats(seat_ids) -> list[str]:
    """Validate seat ids, drop duplicates and keep the caller's order."""
    seats = []
    for seat_id in seat_ids:
        seat = parse_seat(seat_id).id
        if seat not in seats:
            seats.append(seat)
    return seats
