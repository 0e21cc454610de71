# barbershop/routers/calendar_routes.py

from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from barbershop.business_hours import load_config, service_label
from barbershop.core import CANCELLED, appointment_duration, end_time, is_date_available, weekday_name
from barbershop.db import get_session
from barbershop.schemas import AppointmentStatus, CalendarDay
from barbershop.store import load_appointments

router = APIRouter(
    prefix="/calendar",
    tags=["calendar"],
)


@router.get("", response_model=List[CalendarDay])
def calendar(
    start: Optional[date] = None,
    days: int = Query(default=7, ge=1, le=42),
    barber_id: Optional[int] = None,
    include_cancelled: bool = False,
    session: Session = Depends(get_session),
):
    """Appointments grouped by day, with end times worked out from their durations."""
    start = start or date.today()
    end = start + timedelta(days=days - 1)
    config = load_config(session)

    statuses = None
    if not include_cancelled:
        statuses = [s.value for s in AppointmentStatus if s.value != CANCELLED]
    appointments = load_appointments(session, start, end, barber_id=barber_id, statuses=statuses)
    by_day = {}
    for appt in appointments:
        duration = appointment_duration(appt, config)
        by_day.setdefault(appt.date, []).append(
            {
                "id": appt.id,
                "barber_id": appt.barber_id,
                "client_id": appt.client_id,
                "start_time": appt.start_time,
                "end_time": end_time(appt.start_time, duration),
                "service_type": appt.service_type,
                "service_label": service_label(config, appt.service_type),
                "duration_minutes": duration,
                "status": appt.status,
            }
        )

    result = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        result.append(
            {
                "date": day,
                "weekday": weekday_name(day),
                "working_day": is_date_available(day, config),
                "appointments": by_day.get(day, []),
            }
        )
    return result
