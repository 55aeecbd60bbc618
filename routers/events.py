from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth.auth import get_current_staff
from catalog.seats import all_seats, parse_seat
from config.config import Settings, get_settings
from crud import crud
from db.database import get_db
from models.schemas import EventCreate, EventOut, SeatOut

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


@router.get("", response_model=list[EventOut])
def list_events(db: Session = Depends(get_db)):
    return crud.list_events(db)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=EventOut)
def create_event(body: EventCreate, db: Session = Depends(get_db), staff=Depends(get_current_staff)):
    return crud.create_event(db, **body.model_dump())


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return crud.get_event(db, event_id)


@router.get("/{event_id}/sold-seats")
def get_sold_seats(event_id: str, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    crud.get_event(db, event_id)
    return {"sold_seats": sorted(crud.sold_seats(db, event_id, settings.expire_time))}


@router.get("/{event_id}/seats", response_model=list[SeatOut])
def get_seat_map(event_id: str, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    crud.get_event(db, event_id)
    sold = crud.sold_seats(db, event_id, settings.expire_time)
    seats = []
    for seat_id in all_seats():
        seat = parse_seat(seat_id)
        seats.append(SeatOut(
            seat_id=seat.id,
            row=seat.row,
            col=seat.col,
            category=seat.category,
            price=seat.price,
            status="reserved" if seat.id in sold else "available",
        ))
    return seats
