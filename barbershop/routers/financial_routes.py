# barbershop/routers/financial_routes.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from barbershop.business_hours import load_config, service_label
from barbershop.core import CANCELLED
from barbershop.db import get_session
from barbershop.models import Appointment, Barber, utcnow
from barbershop.schemas import AppointmentPublic, AppointmentStatus, FinancialSummary, PaymentCreate
from barbershop.store import load_appointments, save_appointment

router = APIRouter(
    tags=["financial"],
)


@router.post("/appointments/{appointment_id}/payment", response_model=AppointmentPublic)
def record_payment(
    appointment_id: int,
    payment: PaymentCreate,
    session: Session = Depends(get_session),
):
    target = session.get(Appointment, appointment_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if target.status == CANCELLED:
        raise HTTPException(status_code=409, detail="Cancelled appointments cannot be paid")
    if target.paid:
        raise HTTPException(status_code=409, detail="Appointment already paid")

    price = target.price or 0
    if payment.discount > price:
        raise HTTPException(status_code=422, detail="Discount cannot exceed the price")

    target.paid = True
    target.payment_method = payment.method.value
    target.discount = payment.discount
    target.tip = payment.tip
    target.amount_paid = payment.amount if payment.amount is not None else price - payment.discount
    target.paid_at = utcnow()
    if payment.notes:
        target.notes = f"{target.notes}\n{payment.notes}" if target.notes else payment.notes

    try:
        return save_appointment(session, target)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Could not record payment")


@router.get("/financial/summary", response_model=FinancialSummary)
def financial_summary(
    start: date,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
):
    end = end or start
    if end < start:
        raise HTTPException(status_code=422, detail="end must not be before start")

    config = load_config(session)
    appointments = load_appointments(session, start, end)

    by_status = {s.value: 0 for s in AppointmentStatus}
    by_service = {}
    by_method = {}
    by_barber = {}
    revenue = tips = pending = 0.0

    for appt in appointments:
        by_status[appt.status] = by_status.get(appt.status, 0) + 1
        if appt.status == CANCELLED:
            continue
        barber_totals = by_barber.setdefault(
            appt.barber_id,
            {"barber_id": appt.barber_id, "appointments": 0, "revenue": 0.0, "tips": 0.0},
        )
        barber_totals["appointments"] += 1
        if not appt.paid:
            pending += appt.price or 0
            continue

        paid = (appt.amount_paid or 0) + (appt.tip or 0)
        revenue += paid
        tips += appt.tip or 0
        by_method[appt.payment_method] = by_method.get(appt.payment_method, 0) + paid
        barber_totals["revenue"] += paid
        barber_totals["tips"] += appt.tip or 0

        totals = by_service.setdefault(
            appt.service_type,
            {
                "service_type": appt.service_type,
                "label": service_label(config, appt.service_type),
                "count": 0,
                "amount": 0.0,
            },
        )
        totals["count"] += 1
        totals["amount"] += paid

    names = {}
    if by_barber:
        barbers = session.exec(select(Barber).where(col(Barber.id).in_(list(by_barber)))).all()
        names = {b.id: b.name for b in barbers}
    for barber_id, totals in by_barber.items():
        totals["name"] = names.get(barber_id, f"Barber {barber_id}")

    return {
        "start": start,
        "end": end,
        "total_appointments": len(appointments),
        "by_status": by_status,
        "revenue": revenue,
        "tips": tips,
        "pending_amount": pending,
        "by_service": list(by_service.values()),
        "by_payment_method": by_method,
        "by_barber": sorted(by_barber.values(), key=lambda t: t["revenue"], reverse=True),
    }
