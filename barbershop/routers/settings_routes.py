# barbershop/routers/settings_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.business_hours import load_config, normalize_time, on_grid
from barbershop.data import TICK_MINUTES, WEEKDAYS
from barbershop.db import get_session
from barbershop.models import Barbershop
from barbershop.schemas import BusinessConfig, SettingsUpdate
from barbershop.store import get_shop

router = APIRouter(
    prefix="/settings",
    tags=["settings"],
)


@router.get("", response_model=BusinessConfig)
def get_settings(session: Session = Depends(get_session)):
    return load_config(session)


@router.put("", response_model=BusinessConfig)
def update_settings(
    changes: SettingsUpdate,
    session: Session = Depends(get_session),
):
    current = load_config(session)
    merged = {**current.model_dump(), **changes.model_dump(exclude_unset=True, exclude_none=True)}

    # 1) Business hours
    try:
        opens = normalize_time(merged["opens_at"])
        closes = normalize_time(merged["closes_at"])
    except ValueError:
        raise HTTPException(status_code=422, detail="Opening and closing times must use HH:MM")
    if opens >= closes:
        raise HTTPException(status_code=422, detail="Opening time must be before closing time")
    if not (on_grid(opens) and on_grid(closes)):
        raise HTTPException(
            status_code=422, detail=f"Business hours must fall on {TICK_MINUTES}-minute marks"
        )

    # 2) Lunch window must sit strictly inside business hours
    lunch_start = lunch_end = None
    if merged["lunch_active"]:
        try:
            lunch_start = normalize_time(merged["lunch_start"])
            lunch_end = normalize_time(merged["lunch_end"])
        except ValueError:
            raise HTTPException(status_code=422, detail="Lunch times must use HH:MM")
        if lunch_start >= lunch_end:
            raise HTTPException(status_code=422, detail="Lunch start must be before lunch end")
        if lunch_start <= opens:
            raise HTTPException(status_code=422, detail="Lunch must start after opening time")
        if lunch_end >= closes:
            raise HTTPException(status_code=422, detail="Lunch must end before closing time")
        if not (on_grid(lunch_start) and on_grid(lunch_end)):
            raise HTTPException(
                status_code=422, detail=f"Lunch times must fall on {TICK_MINUTES}-minute marks"
            )

    # 3) Working days
    working_days = [str(d).strip().lower() for d in merged["working_days"]]
    invalid = [d for d in working_days if d not in WEEKDAYS]
    if invalid:
        raise HTTPException(status_code=422, detail=f"Unknown working days: {', '.join(invalid)}")
    if len(working_days) != len(set(working_days)):
        raise HTTPException(status_code=422, detail="working_days cannot contain duplicates")

    # 4) Services
    services = merged["service_types"]
    if not services:
        raise HTTPException(status_code=422, detail="At least one service type is required")
    keys = [s["key"] for s in services]
    if len(keys) != len(set(keys)):
        raise HTTPException(status_code=422, detail="Service type keys must be unique")

    # 5) Upsert the single barbershop row
    shop = get_shop(session)
    if shop is None:
        shop = Barbershop(name=merged["shop_name"])

    shop.name = merged["shop_name"]
    shop.address = merged["address"]
    shop.opens_at = opens
    shop.closes_at = closes
    shop.lunch_active = merged["lunch_active"]
    shop.lunch_start = lunch_start
    shop.lunch_end = lunch_end
    shop.working_days = sorted(working_days, key=WEEKDAYS.index)
    shop.slot_minutes = merged["slot_minutes"]
    shop.service_types = services
    shop.whatsapp_active = merged["whatsapp_active"]
    shop.whatsapp_number = merged["whatsapp_number"]
    shop.cancellation_notice_minutes = merged["cancellation_notice_minutes"]

    session.add(shop)
    session.commit()

    return load_config(session)
