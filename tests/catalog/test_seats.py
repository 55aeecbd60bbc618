import pytest

from catalog.seats import (GENERAL, PREFERENTE, VIP, all_seats, category_of,
                           normalize_seats, parse_seat, price_of)
from errors.errors import InvalidSeat


def test_price_of_vip_row():
    assert price_of("A-5") == 38000
    assert category_of("A-5") == VIP


def test_price_of_preferente_rows():
    assert price_of("B-1") == 36000
    assert price_of("C-14") == 36000
    assert category_of("C-14") == PREFERENTE


def test_price_of_general_rows():
    assert price_of("D-1") == 35000
    assert price_of("K-14") == 35000
    assert category_of("K-14") == GENERAL


def test_price_of_is_case_insensitive():
    assert price_of("a-3") == price_of("A-3")


@pytest.mark.parametrize("seat_id", ["Z-1", "A5", "", "A-1-2", "-1"])
def test_price_of_unknown_row_raises(seat_id):
    with pytest.raises(InvalidSeat):
        price_of(seat_id)


@pytest.mark.parametrize("seat_id", ["A-0", "A-12", "B-x", "K-15"])
def test_parse_seat_rejects_columns_outside_layout(seat_id):
    with pytest.raises(InvalidSeat):
        parse_seat(seat_id)


def test_parse_seat_normalizes_id():
    seat = parse_seat("b-07")
    assert seat.id == "B-7"
    assert seat.row == "B"
    assert seat.col == 7
    assert seat.price == 36000


def test_all_seats_is_ordered_and_complete():
    seats = list(all_seats())
    assert len(seats) == 146
    assert seats[0] == "A-1"
    assert seats[10] == "A-11"
    assert seats[11] == "B-1"
    assert seats[-1] == "K-14"
    assert len(set(seats)) == len(seats)


def test_all_seats_is_restartable():
    assert list(all_seats()) == list(all_seats())


def test_normalize_seats_drops_duplicates_and_keeps_order():
    assert normalize_seats(["B-3", "a-1", "B-3"]) == ["B-3", "A-1"]


def test_normalize_seats_rejects_invalid_seat():
    with pytest.raises(InvalidSeat):
        normalize_seats(["A-1", "Q-9"])
