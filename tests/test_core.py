from datetime import date, datetime
from types import SimpleNamespace

import pytest

from barbershop.business_hours import build_config
from barbershop.core import (
    InvalidTransition,
    as_date,
    available_starts,
    can_cancel,
    check_transition,
    end_time,
    expand_ticks,
    find_conflict,
    generate_slots,
    is_date_available,
    is_reactivation,
    occupied_ticks,
    overlaps,
    overlaps_lunch,
    runs_past_closing,
    upcoming_availability,
)
from barbershop.data import FALLBACK_SLOTS
from barbershop.schemas import BusinessConfig

MONDAY = date(2025, 9, 15)
SUNDAY = date(2025, 9, 21)


def appt(id, start_time, service_type="haircut", duration=None, barber_id=1, day=MONDAY, status="scheduled"):
    return SimpleNamespace(
        id=id,
        barber_id=barber_id,
        date=day,
        start_time=start_time,
        service_type=service_type,
        duration_minutes=duration,
        status=status,
    )


@pytest.fixture
def config():
    return build_config()


def raw_config(**overrides):
    values = dict(
        opens_at="08:00",
        closes_at="18:00",
        lunch_active=True,
        lunch_start="12:00",
        lunch_end="13:00",
        working_days=["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"],
    )
    values.update(overrides)
    return BusinessConfig(**values)


# --- slots ---


def test_default_slots_run_open_to_close_without_lunch(config):
    slots = generate_slots(config)
    assert slots[0] == "08:00"
    assert slots[-1] == "18:00"
    assert "11:45" in slots
    assert "13:00" in slots
    for lunch_tick in ("12:00", "12:15", "12:30", "12:45"):
        assert lunch_tick not in slots
    assert slots == FALLBACK_SLOTS


def test_slots_are_ascending_and_unique(config):
    slots = generate_slots(config)
    assert slots == sorted(slots)
    assert len(slots) == len(set(slots))


def test_slots_without_lunch(config):
    slots = generate_slots(config.model_copy(update={"lunch_active": False}))
    assert "12:00" in slots
    assert len(slots) == 41


def test_slots_accept_seconds():
    slots = generate_slots(raw_config(opens_at="09:00:00", closes_at="17:00:00", lunch_end="13:00:00"))
    assert slots[0] == "09:00"
    assert slots[-1] == "17:00"
    assert "13:00" in slots


@pytest.mark.parametrize(
    "overrides",
    [
        {"lunch_start": "12:00", "lunch_end": "12:00"},
        {"lunch_start": "13:00", "lunch_end": "12:00"},
        {"lunch_start": "07:00", "lunch_end": "09:00"},
        {"opens_at": "18:00", "closes_at": "08:00"},
        {"opens_at": "eight", "closes_at": "18:00"},
        {"lunch_start": None, "lunch_end": None},
        {"opens_at": "08:10", "closes_at": "18:10"},
        {"lunch_start": "12:10", "lunch_end": "13:00"},
    ],
)
def test_unusable_config_falls_back(overrides):
    assert generate_slots(raw_config(**overrides)) == FALLBACK_SLOTS


# --- ticks and occupancy ---


def test_expand_ticks_floors_off_grid_start():
    assert expand_ticks(MONDAY, "10:10", 30) == ["10:00", "10:15", "10:30"]


def test_expand_ticks_stops_at_midnight():
    assert expand_ticks(MONDAY, "23:30", 60) == ["23:30", "23:45"]


def test_end_time():
    assert end_time("11:30", 60) == "12:30"


def test_occupied_ticks_uses_stored_duration(config):
    ticks = occupied_ticks(MONDAY, [appt(1, "10:00", duration=60)], config)
    assert ticks == {"10:00", "10:15", "10:30", "10:45"}


def test_occupied_ticks_falls_back_to_service_duration(config):
    ticks = occupied_ticks(MONDAY, [appt(1, "10:00", service_type="haircut_beard")], config)
    assert ticks == {"10:00", "10:15", "10:30", "10:45"}


def test_occupied_ticks_unknown_service_uses_slot_minutes(config):
    ticks = occupied_ticks(MONDAY, [appt(1, "10:00", service_type="massage")], config)
    assert ticks == {"10:00", "10:15"}


def test_occupied_ticks_ignores_cancelled_other_days_and_other_barbers(config):
    appointments = [
        appt(1, "09:00", status="cancelled"),
        appt(2, "10:00", day=date(2025, 9, 16)),
        appt(3, "11:00", barber_id=2),
        appt(4, "15:00:00"),
    ]
    assert occupied_ticks(MONDAY, appointments, config, barber_id=1) == {"15:00", "15:15"}
    assert occupied_ticks(MONDAY, appointments, config) == {"11:00", "11:15", "15:00", "15:15"}


def test_occupied_ticks_skips_unreadable_start(config):
    appointments = [appt(1, "later"), appt(2, "10:00")]
    assert occupied_ticks(MONDAY, appointments, config) == {"10:00", "10:15"}


def test_date_strings_are_understood(config):
    appointments = [appt(1, "10:00", day="15/09/2025"), appt(2, "11:00", day="2025-09-15")]
    assert occupied_ticks(MONDAY, appointments, config) == {"10:00", "10:15", "11:00", "11:15"}
    assert as_date("not a date") is None


# --- availability ---


def test_existing_long_booking_blocks_every_overlapping_start(config):
    existing = [appt(1, "10:00", service_type="haircut_beard", duration=60)]
    starts = available_starts(MONDAY, config, existing, "haircut", barber_id=1)
    assert "09:30" in starts
    assert "09:45" not in starts
    for blocked in ("10:00", "10:15", "10:30", "10:45"):
        assert blocked not in starts
    assert "11:00" in starts

    long_starts = available_starts(MONDAY, config, existing, "haircut_beard", barber_id=1)
    assert "09:00" in long_starts
    assert "09:15" not in long_starts


def test_offered_starts_never_overlap_existing_bookings(config):
    existing = [
        appt(1, "08:30", duration=30),
        appt(2, "10:00", duration=60),
        appt(3, "14:15", duration=45),
    ]
    for service, duration in (("haircut", 30), ("haircut_beard", 60)):
        for start in available_starts(MONDAY, config, existing, service, barber_id=1):
            for booked in existing:
                assert not overlaps(start, duration, booked.start_time, booked.duration_minutes)


def test_service_running_into_lunch_is_not_offered(config):
    starts = available_starts(MONDAY, config, [], "haircut")
    assert "11:30" in starts
    assert "11:45" not in starts
    assert "13:00" in starts

    long_starts = available_starts(MONDAY, config, [], "haircut_beard")
    assert "11:00" in long_starts
    assert "11:15" not in long_starts


def test_services_must_end_by_closing(config):
    starts = available_starts(MONDAY, config, [], "haircut")
    assert "17:30" in starts
    assert "17:45" not in starts
    assert "18:00" not in starts

    long_starts = available_starts(MONDAY, config, [], "haircut_beard")
    assert long_starts[-1] == "17:00"

    assert runs_past_closing("17:30", 60, config)
    assert not runs_past_closing("17:00", 60, config)


def test_off_grid_hours_fall_back_and_listed_starts_match_the_conflict_check():
    config = build_config({"opens_at": "08:10", "closes_at": "18:10", "lunch_active": False})
    assert (config.opens_at, config.closes_at) == ("08:00", "18:00")

    existing = [appt(1, "08:00", duration=30)]
    starts = available_starts(MONDAY, config, existing, "haircut", barber_id=1)
    for start in generate_slots(config):
        free = find_conflict(MONDAY, start, 30, 1, existing, config) is None
        fits = not runs_past_closing(start, 30, config)
        assert (start in starts) == (free and fits)


def test_availability_is_idempotent(config):
    existing = [appt(1, "10:00", duration=60), appt(2, "15:00", barber_id=2)]
    first = available_starts(MONDAY, config, existing, "haircut", barber_id=1)
    second = available_starts(MONDAY, config, existing, "haircut", barber_id=1)
    assert first == second


def test_edited_appointment_gets_its_own_start_back(config):
    own = appt(1, "10:00", duration=30)
    neighbour = appt(2, "10:30", duration=60)
    # Switching to a 60 minute service would collide with the neighbour, but the
    # current start stays selectable in the edit form.
    starts = available_starts(MONDAY, config, [own, neighbour], "haircut_beard", barber_id=1, exclude_id=1)
    assert "10:00" in starts
    assert starts == sorted(starts)

    without_exclusion = available_starts(MONDAY, config, [own, neighbour], "haircut", barber_id=1)
    assert "10:00" not in without_exclusion


def test_edited_appointment_off_grid_start_is_offered_sorted(config):
    own = appt(1, "10:10", duration=30)
    starts = available_starts(MONDAY, config, [own], "haircut", barber_id=1, exclude_id=1)
    assert "10:10" in starts
    assert starts == sorted(starts)


def test_any_barber_needs_only_one_free(config):
    existing = [appt(1, "10:00", barber_id=1)]
    assert "10:00" in available_starts(MONDAY, config, existing, "haircut", barber_ids=[1, 2])
    assert "10:00" not in available_starts(MONDAY, config, existing, "haircut", barber_ids=[1])

    both_busy = existing + [appt(2, "10:00", barber_id=2)]
    assert "10:00" not in available_starts(MONDAY, config, both_busy, "haircut", barber_ids=[1, 2])
    assert available_starts(MONDAY, config, both_busy, "haircut", barber_ids=[]) == []


def test_shop_wide_occupancy_without_barber_scope(config):
    existing = [appt(1, "10:00", barber_id=2)]
    assert "10:00" not in available_starts(MONDAY, config, existing, "haircut")


def test_upcoming_availability_skips_closed_days_and_past_times(config):
    now = datetime(2025, 9, 15, 16, 0)
    result = upcoming_availability(config, [], MONDAY, 7, "haircut", now=now)
    days = [day for day, _ in result]
    assert SUNDAY not in days
    assert len(days) == 6
    first_day, first_times = result[0]
    assert first_day == MONDAY
    assert first_times[0] == "16:00"


def test_is_date_available(config):
    assert is_date_available(MONDAY, config)
    assert not is_date_available(SUNDAY, config)


# --- overlap ---


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (("10:00", 30), ("10:00", 30), True),
        (("10:00", 30), ("10:30", 30), False),
        (("10:30", 30), ("10:00", 30), False),
        (("10:00", 60), ("10:15", 15), True),
        (("10:15", 15), ("10:00", 60), True),
        (("10:00", 45), ("10:30", 30), True),
        (("10:00", 0), ("10:00", 30), True),
        (("10:00", 30), ("11:00", 30), False),
    ],
)
def test_overlaps(a, b, expected):
    assert overlaps(*a, *b) is expected
    assert overlaps(*b, *a) is expected


@pytest.mark.parametrize(
    "args",
    [
        ("10:00", 30, "soon", 30),
        ("10:00", 30, None, 30),
        ("10:00", -30, "11:00", 30),
        ("10:00", "thirty", "11:00", 30),
    ],
)
def test_unreadable_input_counts_as_conflict(args):
    assert overlaps(*args) is True


def test_overlaps_lunch(config):
    assert overlaps_lunch("11:30", 60, config)
    assert not overlaps_lunch("11:30", 30, config)
    assert not overlaps_lunch("13:00", 30, config)
    assert not overlaps_lunch("11:30", 60, config.model_copy(update={"lunch_active": False}))


def test_find_conflict(config):
    existing = [
        appt(1, "10:00", duration=60),
        appt(2, "11:00", status="cancelled"),
        appt(3, "12:00", barber_id=2),
    ]
    assert find_conflict(MONDAY, "10:30", 30, 1, existing, config).id == 1
    assert find_conflict(MONDAY, "11:00", 30, 1, existing, config) is None
    assert find_conflict(MONDAY, "12:00", 30, 1, existing, config) is None
    assert find_conflict(MONDAY, "10:30", 30, 1, existing, config, exclude_id=1) is None


def test_reactivation_is_checked_against_current_bookings(config):
    cancelled = appt(1, "10:00", status="cancelled")
    taken = appt(2, "10:00")
    assert is_reactivation(cancelled.status, "scheduled")
    conflict = find_conflict(MONDAY, "10:00", 30, 1, [cancelled, taken], config, exclude_id=cancelled.id)
    assert conflict is taken


# --- lifecycle ---


@pytest.mark.parametrize(
    "current, new",
    [
        ("scheduled", "confirmed"),
        ("scheduled", "cancelled"),
        ("confirmed", "completed"),
        ("confirmed", "cancelled"),
        ("cancelled", "scheduled"),
        ("cancelled", "confirmed"),
        ("completed", "completed"),
    ],
)
def test_allowed_transitions(current, new):
    check_transition(current, new)


@pytest.mark.parametrize(
    "current, new",
    [
        ("scheduled", "completed"),
        ("completed", "scheduled"),
        ("completed", "cancelled"),
        ("cancelled", "completed"),
    ],
)
def test_rejected_transitions(current, new):
    with pytest.raises(InvalidTransition):
        check_transition(current, new)


def test_can_cancel_respects_notice(config):
    now = datetime(2025, 9, 15, 8, 0)
    assert can_cancel(MONDAY, "10:30", config, now=now)
    assert not can_cancel(MONDAY, "10:00", config, now=now)
    assert not can_cancel(MONDAY, "09:00", config, now=now)
