# barbershop/data.py

TICK_MINUTES = 15

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_SERVICE_TYPES = [
    {"key": "haircut", "label": "Haircut", "duration_minutes": 30, "price": 15000},
    {"key": "haircut_beard", "label": "Haircut + Beard", "duration_minutes": 60, "price": 20000},
    {"key": "beard", "label": "Beard", "duration_minutes": 30, "price": 8000},
    {"key": "kids_haircut", "label": "Kids Haircut", "duration_minutes": 30, "price": 10000},
]

DEFAULT_PRICE = 15000

shop_defaults = {
    "shop_name": "Barbershop",
    "address": None,
    "opens_at": "08:00",
    "closes_at": "18:00",
    "lunch_active": True,
    "lunch_start": "12:00",
    "lunch_end": "13:00",
    "working_days": list(WEEKDAYS[:6]),
    "slot_minutes": 30,
    "whatsapp_active": True,
    "whatsapp_number": None,
    "cancellation_notice_minutes": 120,
}

# Used when the configured hours cannot produce a grid (08:00-18:00, lunch 12:00-13:00)
FALLBACK_SLOTS = [
    "08:00", "08:15", "08:30", "08:45",
    "09:00", "09:15", "09:30", "09:45",
    "10:00", "10:15", "10:30", "10:45",
    "11:00", "11:15", "11:30", "11:45",
    "13:00", "13:15", "13:30", "13:45",
    "14:00", "14:15", "14:30", "14:45",
    "15:00", "15:15", "15:30", "15:45",
    "16:00", "16:15", "16:30", "16:45",
    "17:00", "17:15", "17:30", "17:45",
    "18:00",
]
