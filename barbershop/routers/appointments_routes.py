# barbershop/routers/appointments_routes.py

import logging
from datetime import datetime, date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.business_hours import (
    find_service,
    load_config,
    normalize_time,
    service_duration,
    service_price,
)
from barbershop.core import (
    CANCELLED,
    InvalidTransition,
    can_cancel,
    check_transition,
    find_conflict,
    generate_slots,
    is_date_available,
    is_reactivation,
    overlaps_lunch,
    runs_past_closing,
)
from barbershop.db import get_session
from barbershop.models import Appointment, Barber, Client
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
    BusinessConfig,
)
from barbershop.store import get_or_create_client, load_appointments, save_appointment

logger = logging.getLogger(__name__)

SLOT_TAKEN = "This time is no longer available"

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _validate_slot(
    session: Session,
    config: BusinessConfig,
    barber_id: int,
    day: date,
    start_time: str,
    duration: int,
    exclude_id: Optional[int] = None,
    check_grid: bool = True,
    check_past: bool = True,
    check_hours: bool = True,
):
    """Raise if ``start_time`` cannot be booked; re-reads the day's bookings.

    With ``check_hours`` off only the barber and the conflict check apply.
    """
    # Barber must exist and be working
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber not found")
    if not barber.active:
        raise HTTPException(status_code=422, detail="Barber is not active")

    # Prevent booking in the past (shop-local wall clock, like the stored date and start)
    starts_at = datetime.combine(day, datetime.strptime(start_time, "%H:%M").time())
    if check_past and starts_at < datetime.now():
        raise HTTPException(status_code=422, detail="Cannot book an appointment in the past")

    if check_hours:
        if not is_date_available(day, config):
            raise HTTPException(status_code=422, detail="The shop is closed that day")

        if check_grid and start_time not in generate_slots(config):
            raise HTTPException(status_code=422, detail="Start time is outside business hours")

        if runs_past_closing(start_time, duration, config):
            raise HTTPException(status_code=422, detail="Appointment must end by closing time")

        if overlaps_lunch(start_time, duration, config):
            raise HTTPException(status_code=422, detail="Appointment overlaps the lunch break")

    # Submit-time re-check against a fresh snapshot
    existing = load_appointments(session, day, day, barber_id=barber_id)
    conflict = find_conflict(day, start_time, duration, barber_id, existing, config, exclude_id=exclude_id)
    if conflict is not None:
        logger.info(
            "Conflict for barber %s on %s at %s with appointment %s",
            barber_id, day, start_time, conflict.id,
        )
        raise HTTPException(status_code=409, detail=SLOT_TAKEN)


def _normalized_start(value: str) -> str:
    try:
        return normalize_time(value)
    except ValueError:
        raise HTTPException(status_code=422, detail="start_time must use HH:MM")


def _save(session: Session, appointment: Appointment) -> Appointment:
    try:
        return save_appointment(session, appointment)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=SLOT_TAKEN)


def _get_or_404(session: Session, appointment_id: int) -> Appointment:
    appointment = session.get(Appointment, appointment_id)
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
):
    config = load_config(session)

    # 1) Validate service and status
    if find_service(config, appt.service_type) is None:
        raise HTTPException(status_code=422, detail="Service not available")
    if appt.status not in (AppointmentStatus.scheduled, AppointmentStatus.confirmed):
        raise HTTPException(status_code=422, detail="New appointments must be scheduled or confirmed")

    start_time = _normalized_start(appt.start_time)
    duration = service_duration(config, appt.service_type)

    # 2) Resolve the client
    if appt.client_id is not None:
        if session.get(Client, appt.client_id) is None:
            raise HTTPException(status_code=404, detail="Client not found")
        client_id = appt.client_id
    elif appt.client_name and appt.client_phone:
        client_id = None
    else:
        raise HTTPException(status_code=422, detail="client_id or client_name and client_phone are required")

    # 3) Slot checks, conflict last
    _validate_slot(session, config, appt.barber_id, appt.date, start_time, duration)

    if client_id is None:
        client_id = get_or_create_client(session, appt.client_name, appt.client_phone).id

    # 4) Persist with duration and price snapshotted from the current config
    db_appt = Appointment(
        barber_id=appt.barber_id,
        client_id=client_id,
        date=appt.date,
        start_time=start_time,
        service_type=appt.service_type,
        duration_minutes=duration,
        status=appt.status.value,
        price=service_price(config, appt.service_type),
        notes=appt.notes,
    )
    return _save(session, db_appt)


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    start: Optional[date] = None,
    end: Optional[date] = None,
    barber_id: Optional[int] = None,
    status: Optional[str] = "all",
    session: Session = Depends(get_session),
):
    statuses = [s.value for s in AppointmentStatus]
    if status != "all" and status not in statuses:
        raise HTTPException(status_code=422, detail=f"status must be one of {', '.join(statuses)} or 'all'")

    stmt = select(Appointment)
    if start is not None:
        stmt = stmt.where(Appointment.date >= start)
    if end is not None:
        stmt = stmt.where(Appointment.date <= end)
    if barber_id is not None:
        stmt = stmt.where(Appointment.barber_id == barber_id)
    if status != "all":
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.date, Appointment.start_time)
    return session.exec(stmt).all()


@router.get("/{appointment_id}", response_model=AppointmentPublic)
def get_appointment(
    appointment_id: int,
    session: Session = Depends(get_session),
):
    return _get_or_404(session, appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentPublic)
def update_appointment(
    appointment_id: int,
    changes: AppointmentUpdate,
    session: Session = Depends(get_session),
):
    target = _get_or_404(session, appointment_id)
    config = load_config(session)

    # 1) Status transition
    new_status = changes.status.value if changes.status is not None else target.status
    try:
        check_transition(target.status, new_status)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    # 2) Work out the new schedule without touching the record yet
    barber_id = changes.barber_id if changes.barber_id is not None else target.barber_id
    day = changes.date if changes.date is not None else target.date
    start_time = _normalized_start(changes.start_time or target.start_time)
    service_type = changes.service_type or target.service_type

    service_changed = service_type != target.service_type
    if service_changed and find_service(config, service_type) is None:
        raise HTTPException(status_code=422, detail="Service not available")
    duration = service_duration(config, service_type) if service_changed else target.duration_minutes

    moved = (
        barber_id != target.barber_id
        or day != target.date
        or start_time != _normalized_start(target.start_time)
    )

    # 3) Anything that claims time again must pass the conflict check
    if new_status != CANCELLED and (moved or service_changed or is_reactivation(target.status, new_status)):
        _validate_slot(
            session,
            config,
            barber_id,
            day,
            start_time,
            duration,
            exclude_id=target.id,
            check_grid=moved,
            check_past=moved,
            check_hours=moved or service_changed,
        )

    # 4) Apply
    target.barber_id = barber_id
    target.date = day
    target.start_time = start_time
    target.status = new_status
    if service_changed:
        target.service_type = service_type
        target.duration_minutes = duration
        target.price = service_price(config, service_type)
    if "notes" in changes.model_fields_set:
        target.notes = changes.notes

    return _save(session, target)


@router.patch("/{appointment_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appointment_id: int,
    force: bool = False,
    session: Session = Depends(get_session),
):
    # 1) Find the appointment
    target = _get_or_404(session, appointment_id)

    # 2) Already cancelled?
    if target.status == CANCELLED:
        raise HTTPException(status_code=409, detail="Appointment already cancelled")
    try:
        check_transition(target.status, CANCELLED)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    # 3) Notice window
    config = load_config(session)
    if not force and not can_cancel(target.date, target.start_time, config):
        raise HTTPException(
            status_code=409,
            detail=f"Appointments can only be cancelled {config.cancellation_notice_minutes} minutes in advance",
        )

    # 4) Cancel and persist
    target.status = CANCELLED
    return _save(session, target)


@router.delete("/{appointment_id}", status_code=204)
def delete_appointment(
    appointment_id: int,
    session: Session = Depends(get_session),
):
    target = _get_or_404(session, appointment_id)
    session.delete(target)
    session.commit()
    return Response(status_code=204)
