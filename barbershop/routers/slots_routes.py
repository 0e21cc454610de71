# barbershop/routers/slots_routes.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.business_hours import find_service, load_config
from barbershop.core import available_starts, generate_slots, is_date_available
from barbershop.db import get_session
from barbershop.schemas import AvailabilityResponse, BusinessConfig, SlotsResponse
from barbershop.store import load_active_barbers, load_appointments

router = APIRouter(
    tags=["slots"],
)


def availability_for_day(
    session: Session,
    config: BusinessConfig,
    day: date,
    service_type: str,
    barber_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
):
    """Free starts for ``day`` computed from a fresh read of that day's bookings."""
    if find_service(config, service_type) is None:
        raise HTTPException(status_code=422, detail="Service not available")
    if not is_date_available(day, config):
        return []

    appointments = load_appointments(session, day, day, barber_id=barber_id)
    barber_ids = None
    if barber_id is None:
        barber_ids = [b.id for b in load_active_barbers(session)]
    return available_starts(
        day,
        config,
        appointments,
        service_type,
        barber_id=barber_id,
        exclude_id=exclude_id,
        barber_ids=barber_ids,
    )


@router.get("/slots", response_model=SlotsResponse)
def day_slots(
    date: date,
    session: Session = Depends(get_session),
):
    config = load_config(session)
    return {
        "date": date,
        "working_day": is_date_available(date, config),
        "slots": generate_slots(config),
    }


@router.get("/availability", response_model=AvailabilityResponse)
def any_barber_availability(
    date: date,
    service_type: str = "haircut",
    barber_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    """Starts where at least one active barber (or ``barber_id`` when given) can take the service."""
    config = load_config(session)
    starts = availability_for_day(
        session, config, date, service_type, barber_id=barber_id, exclude_id=exclude_id
    )
    return {
        "barber_id": barber_id,
        "date": date,
        "service_type": service_type,
        "available_starts": starts,
    }
