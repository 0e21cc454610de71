# barbershop/core.py

"""Slot generation, occupancy and conflict checks.

Everything here is a pure function of its arguments: the caller loads the
config and a snapshot of the day's appointments and passes them in. Times
travel as ``HH:MM`` strings; occupancy is tracked on a 15-minute tick grid.

Appointments are read by attribute (``id``, ``barber_id``, ``date``,
``start_time``, ``service_type``, ``duration_minutes``, ``status``), so both
``models.Appointment`` rows and lightweight stand-ins work.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from barbershop.business_hours import normalize_time, parse_time, service_duration
from barbershop.data import FALLBACK_SLOTS, TICK_MINUTES, WEEKDAYS
from barbershop.schemas import AppointmentStatus, BusinessConfig

logger = logging.getLogger(__name__)

TICK = timedelta(minutes=TICK_MINUTES)

# Day used when only the time of day matters
_ANCHOR_DAY = date(2000, 1, 1)

CANCELLED = AppointmentStatus.cancelled.value

ALLOWED_TRANSITIONS = {
    AppointmentStatus.scheduled.value: {
        AppointmentStatus.confirmed.value,
        AppointmentStatus.cancelled.value,
    },
    AppointmentStatus.confirmed.value: {
        AppointmentStatus.completed.value,
        AppointmentStatus.cancelled.value,
    },
    AppointmentStatus.cancelled.value: {
        AppointmentStatus.scheduled.value,
        AppointmentStatus.confirmed.value,
    },
    AppointmentStatus.completed.value: set(),
}


class InvalidTransition(Exception):
    def __init__(self, current, new):
        super().__init__(f"Cannot change status from '{current}' to '{new}'")
        self.current = current
        self.new = new


def _status(value) -> str:
    return value.value if isinstance(value, AppointmentStatus) else str(value)


def _at(day: date, value) -> datetime:
    return datetime.combine(day, parse_time(value))


def as_date(value) -> Optional[date]:
    """Accept ``date`` objects, ISO strings and ``DD/MM/YYYY`` strings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
            try:
                return datetime.strptime(value.strip(), fmt).date()
            except ValueError:
                continue
    return None


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def is_date_available(day: date, config: BusinessConfig) -> bool:
    return weekday_name(day) in config.working_days


def end_time(start, duration_minutes: int) -> str:
    return (_at(_ANCHOR_DAY, start) + timedelta(minutes=duration_minutes)).strftime("%H:%M")


def expand_ticks(day: date, start, duration_minutes: int) -> List[str]:
    """Ticks covered by ``[start, start + duration)``, start floored to the grid."""
    begin = _at(day, start)
    end = begin + timedelta(minutes=duration_minutes)
    current = begin.replace(minute=begin.minute - begin.minute % TICK_MINUTES)
    ticks = []
    while current < end and current.date() == day:
        ticks.append(current.strftime("%H:%M"))
        current += TICK
    return ticks


def appointment_duration(appointment, config: BusinessConfig) -> int:
    """Stored duration if the record has one, else the service's configured one."""
    duration = getattr(appointment, "duration_minutes", None)
    if duration:
        return int(duration)
    return service_duration(config, appointment.service_type)


def generate_slots(config: BusinessConfig) -> List[str]:
    """Every candidate start from opening to closing (inclusive), lunch removed.

    Falls back to ``FALLBACK_SLOTS`` when the config cannot produce a grid.
    """
    try:
        opens = _at(_ANCHOR_DAY, config.opens_at)
        closes = _at(_ANCHOR_DAY, config.closes_at)
        if opens >= closes:
            raise ValueError(f"opens_at {config.opens_at} is not before closes_at {config.closes_at}")
        if opens.minute % TICK_MINUTES or closes.minute % TICK_MINUTES:
            raise ValueError(f"hours {config.opens_at}-{config.closes_at} are not on the {TICK_MINUTES}-minute grid")

        lunch_start = lunch_end = None
        if config.lunch_active:
            lunch_start = _at(_ANCHOR_DAY, config.lunch_start)
            lunch_end = _at(_ANCHOR_DAY, config.lunch_end)
            if not (opens < lunch_start < lunch_end < closes):
                raise ValueError(
                    f"lunch {config.lunch_start}-{config.lunch_end} is not inside business hours"
                )
            if lunch_start.minute % TICK_MINUTES or lunch_end.minute % TICK_MINUTES:
                raise ValueError(
                    f"lunch {config.lunch_start}-{config.lunch_end} is not on the {TICK_MINUTES}-minute grid"
                )
    except (TypeError, ValueError) as exc:
        logger.warning("Could not generate slots (%s); using fallback grid", exc)
        return list(FALLBACK_SLOTS)

    slots = []
    current = opens
    while current <= closes:
        # Lunch start is excluded, a slot starting exactly at lunch end is bookable
        if lunch_start is None or not (lunch_start <= current < lunch_end):
            slots.append(current.strftime("%H:%M"))
        current += TICK
    return slots


def _lunch_ticks(config: BusinessConfig) -> Set[str]:
    if not config.lunch_active:
        return set()
    try:
        length = _at(_ANCHOR_DAY, config.lunch_end) - _at(_ANCHOR_DAY, config.lunch_start)
        minutes = int(length.total_seconds() // 60)
        if minutes <= 0:
            return set()
        return set(expand_ticks(_ANCHOR_DAY, config.lunch_start, minutes))
    except (TypeError, ValueError):
        return set()


def occupied_ticks(
    day: date,
    appointments: Iterable,
    config: BusinessConfig,
    barber_id: Optional[int] = None,
) -> Set[str]:
    """Ticks consumed on ``day`` by non-cancelled appointments (of one barber if given)."""
    occupied = set()
    for appt in appointments:
        if _status(appt.status) == CANCELLED:
            continue
        if barber_id is not None and appt.barber_id != barber_id:
            continue
        if as_date(appt.date) != day:
            continue
        try:
            occupied.update(expand_ticks(day, appt.start_time, appointment_duration(appt, config)))
        except (TypeError, ValueError):
            logger.warning(
                "Skipping appointment %s with unreadable start time %r",
                getattr(appt, "id", None),
                appt.start_time,
            )
    return occupied


def available_starts(
    day: date,
    config: BusinessConfig,
    appointments: Iterable,
    service_type: str,
    barber_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
    barber_ids: Optional[Iterable[int]] = None,
) -> List[str]:
    """Starts on ``day`` where the whole ``service_type`` fits.

    With ``barber_id`` only that barber's bookings count. Without it a start is
    offered when at least one of ``barber_ids`` is free, or, when
    ``barber_ids`` is None, when the shop as a whole is free.

    ``exclude_id`` is the appointment being edited: it never blocks anything
    and its current start is always offered back.
    """
    appointments = list(appointments)
    duration = service_duration(config, service_type)
    lunch = _lunch_ticks(config)

    others = [a for a in appointments if exclude_id is None or a.id != exclude_id]
    if barber_id is not None:
        occupancies = [occupied_ticks(day, others, config, barber_id)]
    elif barber_ids is None:
        occupancies = [occupied_ticks(day, others, config)]
    else:
        occupancies = [occupied_ticks(day, others, config, b) for b in barber_ids]

    starts = []
    for start in generate_slots(config):
        if runs_past_closing(start, duration, config):
            continue
        needed = set(expand_ticks(day, start, duration))
        if needed & lunch:
            continue
        if any(not (needed & occupied) for occupied in occupancies):
            starts.append(start)

    if exclude_id is not None:
        own = next((a for a in appointments if a.id == exclude_id), None)
        if (
            own is not None
            and as_date(own.date) == day
            and (barber_id is None or own.barber_id == barber_id)
        ):
            try:
                own_start = normalize_time(own.start_time)
            except ValueError:
                own_start = None
            if own_start and own_start not in starts:
                starts.append(own_start)
                starts.sort()
    return starts


def overlaps(start_a, duration_a, start_b, duration_b) -> bool:
    """True when ``[start_a, +duration_a)`` and ``[start_b, +duration_b)`` collide.

    Unreadable input counts as a collision.
    """
    try:
        a_start = _at(_ANCHOR_DAY, start_a)
        b_start = _at(_ANCHOR_DAY, start_b)
        a_minutes, b_minutes = int(duration_a), int(duration_b)
        if a_minutes < 0 or b_minutes < 0:
            raise ValueError("negative duration")
    except (TypeError, ValueError) as exc:
        logger.warning(
            "Treating %r/%r vs %r/%r as a conflict: %s",
            start_a, duration_a, start_b, duration_b, exc,
        )
        return True
    a_end = a_start + timedelta(minutes=a_minutes)
    b_end = b_start + timedelta(minutes=b_minutes)
    return a_start == b_start or a_start < b_start < a_end or b_start < a_start < b_end


def overlaps_lunch(start, duration_minutes: int, config: BusinessConfig) -> bool:
    if not config.lunch_active:
        return False
    try:
        length = _at(_ANCHOR_DAY, config.lunch_end) - _at(_ANCHOR_DAY, config.lunch_start)
    except (TypeError, ValueError):
        return False
    return overlaps(start, duration_minutes, config.lunch_start, int(length.total_seconds() // 60))


def runs_past_closing(start, duration_minutes: int, config: BusinessConfig) -> bool:
    try:
        ends_at = _at(_ANCHOR_DAY, start) + timedelta(minutes=duration_minutes)
        return ends_at > _at(_ANCHOR_DAY, config.closes_at)
    except (TypeError, ValueError):
        return False


def find_conflict(
    day: date,
    start,
    duration_minutes: int,
    barber_id: int,
    appointments: Iterable,
    config: BusinessConfig,
    exclude_id: Optional[int] = None,
):
    """First active appointment of ``barber_id`` on ``day`` that collides, or None."""
    for appt in appointments:
        if exclude_id is not None and appt.id == exclude_id:
            continue
        if _status(appt.status) == CANCELLED:
            continue
        if appt.barber_id != barber_id or as_date(appt.date) != day:
            continue
        if overlaps(start, duration_minutes, appt.start_time, appointment_duration(appt, config)):
            return appt
    return None


def check_transition(current, new) -> None:
    current, new = _status(current), _status(new)
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(current, new)


def is_reactivation(current, new) -> bool:
    return _status(current) == CANCELLED and _status(new) != CANCELLED


def can_cancel(day: date, start, config: BusinessConfig, now: Optional[datetime] = None) -> bool:
    """Whether the appointment is still outside the cancellation notice window."""
    now = now or datetime.now()
    try:
        starts_at = _at(day, start)
    except (TypeError, ValueError):
        return False
    return starts_at > now + timedelta(minutes=config.cancellation_notice_minutes)


def upcoming_availability(
    config: BusinessConfig,
    appointments: Iterable,
    start: date,
    days: int,
    service_type: str,
    barber_id: Optional[int] = None,
    barber_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> List[Tuple[date, List[str]]]:
    """Free starts per working day for ``days`` days from ``start``, past times dropped."""
    now = now or datetime.now()
    appointments = list(appointments)
    barber_ids = list(barber_ids) if barber_ids is not None else None
    result = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        if not is_date_available(day, config):
            continue
        starts = available_starts(
            day,
            config,
            appointments,
            service_type,
            barber_id=barber_id,
            barber_ids=barber_ids,
        )
        starts = [s for s in starts if _at(day, s) >= now]
        if starts:
            result.append((day, starts))
    return result
