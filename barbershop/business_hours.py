# barbershop/business_hours.py

"""Scheduling rules of the shop.

``build_config`` is the only place defaults are applied: every consumer gets a
``BusinessConfig`` whose fields are already filled in, so slot code never has
to guess about missing values.
"""

import logging
from datetime import datetime, time
from typing import Mapping, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from barbershop.data import DEFAULT_PRICE, DEFAULT_SERVICE_TYPES, TICK_MINUTES, WEEKDAYS, shop_defaults
from barbershop.models import Barbershop
from barbershop.schemas import BusinessConfig, ServiceType

logger = logging.getLogger(__name__)


def normalize_time(value) -> str:
    """Return ``value`` as ``HH:MM``; accepts ``time`` objects and ``HH:MM[:SS]`` strings.

    Raises ValueError for anything else.
    """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if not isinstance(value, str):
        raise ValueError(f"Not a time of day: {value!r}")
    value = value.strip()
    if value.count(":") == 2:
        value = value.rsplit(":", 1)[0]
    return datetime.strptime(value, "%H:%M").strftime("%H:%M")


def parse_time(value) -> time:
    return datetime.strptime(normalize_time(value), "%H:%M").time()


def on_grid(value: str) -> bool:
    """Whether an ``HH:MM`` value falls on a 15-minute tick."""
    return int(value[3:5]) % TICK_MINUTES == 0


def _valid_hours(opens_at, closes_at):
    try:
        opens, closes = normalize_time(opens_at), normalize_time(closes_at)
    except ValueError:
        return None
    if opens >= closes or not (on_grid(opens) and on_grid(closes)):
        return None
    return opens, closes


def _valid_lunch(lunch_start, lunch_end, opens, closes):
    try:
        start, end = normalize_time(lunch_start), normalize_time(lunch_end)
    except ValueError:
        return None
    if not (opens < start < end < closes) or not (on_grid(start) and on_grid(end)):
        return None
    return start, end


def _working_days(raw_days):
    if not isinstance(raw_days, (list, tuple, set)):
        return list(shop_defaults["working_days"])
    days = []
    for day in raw_days:
        name = str(day).strip().lower()
        if name in WEEKDAYS and name not in days:
            days.append(name)
    if raw_days and not days:
        logger.warning("No valid working days in %r, using defaults", raw_days)
        return list(shop_defaults["working_days"])
    # Keep calendar order regardless of how they were stored
    return sorted(days, key=WEEKDAYS.index)


def _service_types(raw_services):
    if not raw_services:
        return [ServiceType(**s) for s in DEFAULT_SERVICE_TYPES]
    services = []
    seen = set()
    for raw in raw_services:
        try:
            service = ServiceType.model_validate(raw)
        except ValidationError:
            logger.warning("Skipping malformed service type %r", raw)
            continue
        if service.key in seen:
            continue
        seen.add(service.key)
        services.append(service)
    if not services:
        return [ServiceType(**s) for s in DEFAULT_SERVICE_TYPES]
    return services


def _positive_int(value, default):
    if isinstance(value, bool):
        return default
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def build_config(raw: Optional[Mapping] = None) -> BusinessConfig:
    """Build a BusinessConfig from a stored record, defaulting field by field."""
    raw = dict(raw or {})

    def pick(key):
        value = raw.get(key)
        return shop_defaults[key] if value is None or value == "" else value

    hours = _valid_hours(pick("opens_at"), pick("closes_at"))
    if hours is None:
        logger.warning(
            "Invalid business hours %r-%r, using defaults",
            raw.get("opens_at"),
            raw.get("closes_at"),
        )
        hours = (shop_defaults["opens_at"], shop_defaults["closes_at"])
    opens, closes = hours

    lunch_active = pick("lunch_active")
    if not isinstance(lunch_active, bool):
        lunch_active = shop_defaults["lunch_active"]
    lunch_start = lunch_end = None
    if lunch_active:
        lunch = _valid_lunch(pick("lunch_start"), pick("lunch_end"), opens, closes)
        if lunch is None:
            logger.warning(
                "Invalid lunch window %r-%r, lunch disabled",
                raw.get("lunch_start"),
                raw.get("lunch_end"),
            )
            lunch_active = False
        else:
            lunch_start, lunch_end = lunch

    whatsapp_active = raw.get("whatsapp_active")
    if not isinstance(whatsapp_active, bool):
        whatsapp_active = shop_defaults["whatsapp_active"]

    notice = raw.get("cancellation_notice_minutes")
    if isinstance(notice, bool) or not isinstance(notice, int) or notice < 0:
        notice = shop_defaults["cancellation_notice_minutes"]

    return BusinessConfig(
        opens_at=opens,
        closes_at=closes,
        lunch_active=lunch_active,
        lunch_start=lunch_start,
        lunch_end=lunch_end,
        working_days=_working_days(raw.get("working_days")),
        slot_minutes=_positive_int(raw.get("slot_minutes"), shop_defaults["slot_minutes"]),
        service_types=_service_types(raw.get("service_types")),
        shop_name=raw.get("shop_name") or shop_defaults["shop_name"],
        address=raw.get("address") or shop_defaults["address"],
        whatsapp_active=whatsapp_active,
        whatsapp_number=raw.get("whatsapp_number") or shop_defaults["whatsapp_number"],
        cancellation_notice_minutes=notice,
    )


def shop_to_raw(shop: Barbershop) -> dict:
    return {
        "shop_name": shop.name,
        "address": shop.address,
        "opens_at": shop.opens_at,
        "closes_at": shop.closes_at,
        "lunch_active": shop.lunch_active,
        "lunch_start": shop.lunch_start,
        "lunch_end": shop.lunch_end,
        "working_days": shop.working_days,
        "slot_minutes": shop.slot_minutes,
        "service_types": shop.service_types,
        "whatsapp_active": shop.whatsapp_active,
        "whatsapp_number": shop.whatsapp_number,
        "cancellation_notice_minutes": shop.cancellation_notice_minutes,
    }


def load_config(session: Session) -> BusinessConfig:
    """Load the shop's rules, falling back to defaults when the store fails."""
    try:
        shop = session.exec(select(Barbershop)).first()
    except SQLAlchemyError:
        logger.exception("Could not load barbershop configuration, using defaults")
        return build_config()
    if shop is None:
        return build_config()
    return build_config(shop_to_raw(shop))


def find_service(config: BusinessConfig, key: str) -> Optional[ServiceType]:
    for service in config.service_types:
        if service.key == key:
            return service
    return None


def service_duration(config: BusinessConfig, key: str) -> int:
    service = find_service(config, key)
    return service.duration_minutes if service else config.slot_minutes


def service_price(config: BusinessConfig, key: str) -> float:
    service = find_service(config, key)
    if service:
        return service.price
    if config.service_types:
        return config.service_types[0].price
    return DEFAULT_PRICE


def service_label(config: BusinessConfig, key: str) -> str:
    service = find_service(config, key)
    return service.label if service else key
