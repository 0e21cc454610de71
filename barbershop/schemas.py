# barbershop/schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from datetime import datetime, date as Date
from typing import List, Optional


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class PaymentMethod(str, Enum):
    cash = "cash"
    card = "card"
    transfer = "transfer"
    sinpe = "sinpe"


def _strip_seconds(value):
    # "13:00:00" -> "13:00"; anything else is left for the slot code to judge
    if isinstance(value, str):
        value = value.strip()
        if value.count(":") == 2:
            return value[:5]
    return value


class ServiceType(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    duration_minutes: int = Field(gt=0)
    price: float = Field(ge=0)


class BusinessConfig(BaseModel):
    """Scheduling rules for one request; built by business_hours.build_config."""

    model_config = ConfigDict(frozen=True)

    opens_at: str
    closes_at: str
    lunch_active: bool = False
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    working_days: List[str]
    slot_minutes: int = 30
    service_types: List[ServiceType] = []

    shop_name: str = "Barbershop"
    address: Optional[str] = None
    whatsapp_active: bool = True
    whatsapp_number: Optional[str] = None
    cancellation_notice_minutes: int = 120

    @field_validator("opens_at", "closes_at", "lunch_start", "lunch_end", mode="before")
    @classmethod
    def normalize_times(cls, value):
        return _strip_seconds(value)


class SettingsUpdate(BaseModel):
    shop_name: Optional[str] = None
    address: Optional[str] = None
    opens_at: Optional[str] = None
    closes_at: Optional[str] = None
    lunch_active: Optional[bool] = None
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    working_days: Optional[List[str]] = None
    slot_minutes: Optional[int] = Field(default=None, gt=0)
    service_types: Optional[List[ServiceType]] = None
    whatsapp_active: Optional[bool] = None
    whatsapp_number: Optional[str] = None
    cancellation_notice_minutes: Optional[int] = Field(default=None, ge=0)


class SlotsResponse(BaseModel):
    date: Date
    working_day: bool
    slots: List[str]


class BarberCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    specialty: Optional[str] = None


class BarberUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    specialty: Optional[str] = None
    active: Optional[bool] = None


class BarberPublic(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    specialty: Optional[str] = None
    active: bool


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[str] = None


class ClientPublic(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None


class AppointmentCreate(BaseModel):
    barber_id: int
    date: Date
    start_time: str
    service_type: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.scheduled
    notes: Optional[str] = None

    @field_validator("start_time", mode="before")
    @classmethod
    def normalize_start(cls, value):
        return _strip_seconds(value)


class AppointmentUpdate(BaseModel):
    barber_id: Optional[int] = None
    date: Optional[Date] = None
    start_time: Optional[str] = None
    service_type: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator("start_time", mode="before")
    @classmethod
    def normalize_start(cls, value):
        return _strip_seconds(value)


class AppointmentPublic(BaseModel):
    id: int
    barber_id: int
    client_id: int
    date: Date
    start_time: str
    service_type: str
    duration_minutes: int
    status: str
    price: Optional[float] = None
    notes: Optional[str] = None
    paid: bool
    payment_method: Optional[str] = None
    amount_paid: Optional[float] = None
    discount: float
    tip: float


class AvailabilityResponse(BaseModel):
    barber_id: Optional[int] = None
    date: Date
    service_type: str
    available_starts: List[str]


class CalendarEntry(BaseModel):
    id: int
    barber_id: int
    client_id: int
    start_time: str
    end_time: str
    service_type: str
    service_label: str
    duration_minutes: int
    status: str


class CalendarDay(BaseModel):
    date: Date
    weekday: str
    working_day: bool
    appointments: List[CalendarEntry]


class PaymentCreate(BaseModel):
    method: PaymentMethod
    amount: Optional[float] = Field(default=None, ge=0)
    discount: float = Field(default=0, ge=0)
    tip: float = Field(default=0, ge=0)
    notes: Optional[str] = None


class ServiceTotal(BaseModel):
    service_type: str
    label: str
    count: int
    amount: float


class BarberTotal(BaseModel):
    barber_id: int
    name: str
    appointments: int
    revenue: float
    tips: float


class FinancialSummary(BaseModel):
    start: Date
    end: Date
    total_appointments: int
    by_status: dict[str, int]
    revenue: float
    tips: float
    pending_amount: float
    by_service: List[ServiceTotal]
    by_payment_method: dict[str, float]
    by_barber: List[BarberTotal]


class AvailabilityMessageRequest(BaseModel):
    days: int = Field(default=7, ge=1, le=31)
    service_type: str = "haircut"
    barber_id: Optional[int] = None


class MessageResponse(BaseModel):
    message: str
    phone: Optional[str] = None
    generated_at: datetime
