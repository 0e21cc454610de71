# barbershop/routers/barbers_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.business_hours import load_config
from barbershop.db import get_session
from barbershop.models import Barber
from barbershop.routers.slots_routes import availability_for_day
from barbershop.schemas import AvailabilityResponse, BarberCreate, BarberPublic, BarberUpdate

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    session: Session = Depends(get_session),
):
    db_barber = Barber(
        name=barber.name.strip(),
        phone=barber.phone,
        specialty=barber.specialty,
        active=True,
    )
    session.add(db_barber)
    session.commit()
    session.refresh(db_barber)
    return db_barber


@router.get("", response_model=List[BarberPublic])
def list_barbers(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
):
    stmt = select(Barber)
    if not include_inactive:
        stmt = stmt.where(Barber.active == True)  # noqa: E712
    stmt = stmt.order_by(Barber.name)
    return session.exec(stmt).all()


@router.patch("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: int,
    changes: BarberUpdate,
    session: Session = Depends(get_session),
):
    db_barber = session.get(Barber, barber_id)
    if db_barber is None:
        raise HTTPException(status_code=404, detail="Barber not found")

    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(db_barber, field, value)

    session.add(db_barber)
    session.commit()
    session.refresh(db_barber)
    return db_barber


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: date,
    service_type: str = "haircut",
    exclude_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    # 1) Lookup barber
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber not found")
    if not barber.active:
        return {"barber_id": barber_id, "date": date, "service_type": service_type, "available_starts": []}

    # 2) Fresh config + bookings for that day
    config = load_config(session)
    starts = availability_for_day(
        session, config, date, service_type, barber_id=barber_id, exclude_id=exclude_id
    )

    return {"barber_id": barber_id, "date": date, "service_type": service_type, "available_starts": starts}
