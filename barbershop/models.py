# barbershop/models.py

from typing import Optional, List
from datetime import datetime, timezone, date as Date

from sqlalchemy import Index, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Barbershop(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    opens_at: Optional[str] = None
    closes_at: Optional[str] = None
    lunch_active: Optional[bool] = None
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    working_days: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    slot_minutes: Optional[int] = None
    service_types: Optional[List[dict]] = Field(default=None, sa_column=Column(JSON))

    whatsapp_active: Optional[bool] = None
    whatsapp_number: Optional[str] = None
    cancellation_notice_minutes: Optional[int] = None


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    phone: Optional[str] = None
    specialty: Optional[str] = None
    active: bool = True


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    phone: str = Field(index=True)
    email: Optional[str] = None


class Appointment(SQLModel, table=True):
    # Two active bookings can never share a barber/date/start
    __table_args__ = (
        Index(
            "uq_barber_active_start",
            "barber_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    date: Date = Field(index=True)
    start_time: str  # HH:MM
    service_type: str
    duration_minutes: int
    status: str = "scheduled"
    price: Optional[float] = None
    notes: Optional[str] = None

    paid: bool = False
    payment_method: Optional[str] = None
    amount_paid: Optional[float] = None
    discount: float = 0
    tip: float = 0
    paid_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
