from datetime import date, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from barbershop.models import Appointment, Barber, Client
from barbershop.store import get_or_create_client, load_appointments, save_appointment

DAY = date(2025, 9, 15)


@pytest.fixture
def barber(session):
    barber = Barber(name="Carlos")
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@pytest.fixture
def customer(session):
    return get_or_create_client(session, "Ana", "88887777")


def booking(barber, customer, start_time="10:00", status="scheduled", day=DAY):
    return Appointment(
        barber_id=barber.id,
        client_id=customer.id,
        date=day,
        start_time=start_time,
        service_type="haircut",
        duration_minutes=30,
        status=status,
        price=15000,
    )


def test_save_appointment_stamps_and_persists(session, barber, customer):
    appointment = booking(barber, customer)
    assert appointment.created_at.tzinfo is not None

    saved = save_appointment(session, appointment)
    assert saved.id is not None
    assert saved.updated_at is not None
    assert [a.id for a in load_appointments(session, DAY, DAY)] == [saved.id]


def test_two_active_bookings_cannot_share_a_start(session, barber, customer):
    save_appointment(session, booking(barber, customer))

    with pytest.raises(IntegrityError):
        save_appointment(session, booking(barber, customer, status="confirmed"))

    assert len(load_appointments(session, DAY, DAY)) == 1


def test_cancelled_rows_do_not_hold_the_start(session, barber, customer):
    first = save_appointment(session, booking(barber, customer))
    first.status = "cancelled"
    save_appointment(session, first)

    second = save_appointment(session, booking(barber, customer))
    save_appointment(session, booking(barber, customer, status="cancelled"))

    active = load_appointments(session, DAY, DAY, statuses=["scheduled", "confirmed"])
    assert [a.id for a in active] == [second.id]
    assert len(load_appointments(session, DAY, DAY)) == 3


def test_load_appointments_range_and_barber(session, barber, customer):
    other = Barber(name="Diego")
    session.add(other)
    session.commit()
    session.refresh(other)

    save_appointment(session, booking(barber, customer, start_time="11:00"))
    save_appointment(session, booking(barber, customer, start_time="09:00"))
    save_appointment(session, booking(other, customer, start_time="09:00"))
    save_appointment(session, booking(barber, customer, day=DAY + timedelta(days=1)))

    loaded = load_appointments(session, DAY, DAY, barber_id=barber.id)
    assert [a.start_time for a in loaded] == ["09:00", "11:00"]
    assert len(load_appointments(session, DAY, DAY + timedelta(days=1))) == 4


def test_get_or_create_client_matches_phone_then_name(session):
    ana = get_or_create_client(session, "Ana", "8888-7777")
    assert ana.phone == "+50688887777"

    assert get_or_create_client(session, "Ana López", "88887777").id == ana.id
    assert get_or_create_client(session, "ana lópez", "87776655").id == ana.id
    assert session.get(Client, ana.id).phone == "+50687776655"

    assert get_or_create_client(session, "Luis", "81112222").id != ana.id
