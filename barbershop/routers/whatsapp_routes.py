# barbershop/routers/whatsapp_routes.py

from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.business_hours import find_service, load_config, service_label
from barbershop.core import upcoming_availability
from barbershop.db import get_session
from barbershop.messages import (
    availability_message,
    confirmation_message,
    format_phone_number,
    reminder_message,
    whatsapp_status,
)
from barbershop.models import Appointment, Barber, Client
from barbershop.schemas import AvailabilityMessageRequest, MessageResponse
from barbershop.store import load_active_barbers, load_appointments

router = APIRouter(
    prefix="/whatsapp",
    tags=["whatsapp"],
)


@router.get("/status")
def status():
    return whatsapp_status()


@router.post("/availability-message", response_model=MessageResponse)
def build_availability_message(
    request: AvailabilityMessageRequest,
    session: Session = Depends(get_session),
):
    """Free slots from tomorrow on, as a message ready to paste into WhatsApp."""
    config = load_config(session)
    if find_service(config, request.service_type) is None:
        raise HTTPException(status_code=422, detail="Service not available")

    barber = None
    barber_ids = None
    if request.barber_id is not None:
        barber = session.get(Barber, request.barber_id)
        if barber is None:
            raise HTTPException(status_code=404, detail="Barber not found")
    else:
        barber_ids = [b.id for b in load_active_barbers(session)]

    start = date.today() + timedelta(days=1)
    end = start + timedelta(days=request.days - 1)
    appointments = load_appointments(session, start, end, barber_id=request.barber_id)

    availability = upcoming_availability(
        config,
        appointments,
        start,
        request.days,
        request.service_type,
        barber_id=request.barber_id,
        barber_ids=barber_ids,
    )
    message = availability_message(
        config,
        availability,
        request.days,
        barber_name=barber.name if barber else None,
        barber_specialty=barber.specialty if barber else None,
    )
    return {"message": message, "phone": config.whatsapp_number, "generated_at": datetime.now()}


def _appointment_parts(session: Session, appointment_id: int):
    appt = session.get(Appointment, appointment_id)
    if appt is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    client = session.get(Client, appt.client_id)
    barber = session.get(Barber, appt.barber_id)
    if client is None or barber is None:
        raise HTTPException(status_code=404, detail="Appointment is missing its client or barber")
    return appt, client, barber


@router.get("/appointments/{appointment_id}/confirmation", response_model=MessageResponse)
def build_confirmation(
    appointment_id: int,
    session: Session = Depends(get_session),
):
    appt, client, barber = _appointment_parts(session, appointment_id)
    config = load_config(session)
    message = confirmation_message(
        config,
        client.name,
        appt.date,
        appt.start_time,
        barber.name,
        service_label(config, appt.service_type),
        price=appt.price,
    )
    return {"message": message, "phone": format_phone_number(client.phone), "generated_at": datetime.now()}


@router.get("/appointments/{appointment_id}/reminder", response_model=MessageResponse)
def build_reminder(
    appointment_id: int,
    session: Session = Depends(get_session),
):
    appt, client, barber = _appointment_parts(session, appointment_id)
    config = load_config(session)
    message = reminder_message(config, client.name, appt.date, appt.start_time, barber.name)
    return {"message": message, "phone": format_phone_number(client.phone), "generated_at": datetime.now()}
