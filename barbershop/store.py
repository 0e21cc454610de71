# barbershop/store.py

"""Database reads and writes used by the routers.

Conflict checks read through ``load_appointments`` in the same session that
later writes, so a booking committed by another request is visible to the
check that runs right before the next insert.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from barbershop.messages import format_phone_number
from barbershop.models import Appointment, Barber, Barbershop, Client, utcnow

logger = logging.getLogger(__name__)


def get_shop(session: Session) -> Optional[Barbershop]:
    return session.exec(select(Barbershop)).first()


def load_appointments(
    session: Session,
    start: date,
    end: date,
    barber_id: Optional[int] = None,
    statuses: Optional[Iterable[str]] = None,
) -> List[Appointment]:
    """Appointments with ``start <= date <= end``, ordered by date and time."""
    stmt = (
        select(Appointment)
        .where(Appointment.date >= start)
        .where(Appointment.date <= end)
    )
    if barber_id is not None:
        stmt = stmt.where(Appointment.barber_id == barber_id)
    if statuses is not None:
        stmt = stmt.where(col(Appointment.status).in_(list(statuses)))
    stmt = stmt.order_by(Appointment.date, Appointment.start_time)
    return list(session.exec(stmt).all())


def load_active_barbers(session: Session) -> List[Barber]:
    stmt = select(Barber).where(Barber.active == True).order_by(Barber.name)  # noqa: E712
    return list(session.exec(stmt).all())


def save_appointment(session: Session, appointment: Appointment) -> Appointment:
    appointment.updated_at = utcnow()
    session.add(appointment)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(
            "Rejected write for barber %s at %s %s: slot already taken",
            appointment.barber_id,
            appointment.date,
            appointment.start_time,
        )
        raise
    session.refresh(appointment)
    return appointment


def get_or_create_client(session: Session, name: str, phone: str) -> Client:
    """Match by phone first, then by name (case-insensitive); refresh stored details."""
    phone = format_phone_number(phone)
    name = name.strip()

    client = session.exec(select(Client).where(Client.phone == phone)).first()
    if client is None:
        client = session.exec(
            select(Client).where(func.lower(Client.name) == name.lower())
        ).first()

    if client is None:
        client = Client(name=name, phone=phone)
        session.add(client)
    elif client.name != name or client.phone != phone:
        client.name = name
        client.phone = phone
        session.add(client)
    else:
        return client

    session.commit()
    session.refresh(client)
    return client
