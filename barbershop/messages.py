# barbershop/messages.py

"""WhatsApp message texts. Only the text is built here; nothing is sent."""

import re
from datetime import date
from typing import List, Optional, Sequence, Tuple

from barbershop.config import settings
from barbershop.core import weekday_name
from barbershop.schemas import BusinessConfig

_PHONE_NOISE = re.compile(r"[\s\-()]")


def format_phone_number(phone: str, country_code: Optional[str] = None) -> str:
    """Strip separators and prefix the country code to bare 8-digit local numbers."""
    country_code = country_code or settings.default_country_code
    cleaned = _PHONE_NOISE.sub("", phone or "")
    if not cleaned.startswith("+") and not cleaned.startswith(country_code.lstrip("+")):
        if len(cleaned) == 8:
            cleaned = country_code + cleaned
    return cleaned


def validate_phone_number(phone: str, country_code: Optional[str] = None) -> bool:
    country_code = country_code or settings.default_country_code
    formatted = format_phone_number(phone, country_code)
    return re.fullmatch(re.escape(country_code) + r"\d{8}", formatted) is not None


def format_price(amount: float) -> str:
    return f"{settings.currency_symbol}{amount:,.0f}"


def _day_label(day: date) -> str:
    return f"{weekday_name(day).capitalize()} {day.strftime('%d/%m')}"


def availability_message(
    config: BusinessConfig,
    availability: Sequence[Tuple[date, List[str]]],
    days: int,
    barber_name: Optional[str] = None,
    barber_specialty: Optional[str] = None,
) -> str:
    lines = [f"🪒 *{config.shop_name}* 🪒", "", f"📅 *AVAILABILITY FOR THE NEXT {days} DAYS*", ""]
    if barber_name:
        lines.append(f"👨‍💼 Barber: *{barber_name}*")
        if barber_specialty:
            lines.append(f"🎯 Specialty: {barber_specialty}")
        lines.append("")

    if not availability:
        lines.append(f"❌ No availability in the next {days} days.")
        lines.append("")
        lines.append("📞 Contact us to arrange an appointment on a later date.")
        return "\n".join(lines)

    for index, (day, times) in enumerate(availability):
        lines.append(f"📆 *{_day_label(day)}*")
        lines.append("🕒 " + " | ".join(times))
        if index < len(availability) - 1:
            lines.append("")

    lines += [
        "",
        "",
        "💬 *To book your appointment:*",
        "Reply with:",
        '"BOOK [DAY] [TIME]"',
        'Example: "BOOK Monday 09:00"',
        "",
        f"📍 {config.address or 'Address shared when booking'}",
    ]
    if config.whatsapp_number:
        lines.append(f"📱 WhatsApp: {config.whatsapp_number}")
    return "\n".join(lines)


def confirmation_message(
    config: BusinessConfig,
    client_name: str,
    day: date,
    start_time: str,
    barber_name: str,
    service_label: str,
    price: Optional[float] = None,
) -> str:
    lines = [
        "🎉 *Appointment Confirmed*",
        "",
        config.shop_name,
        "",
        f"Hi {client_name}!",
        "",
        "Your appointment is confirmed:",
        f"📅 {_day_label(day)}",
        f"🕒 {start_time}",
        f"👨‍💼 Barber: {barber_name}",
        f"✂️ Service: {service_label}",
    ]
    if price:
        lines.append(f"💰 Price: {format_price(price)}")
    lines += ["", "See you soon! 💈", "", "For any change, reply to this message."]
    return "\n".join(lines)


def reminder_message(
    config: BusinessConfig,
    client_name: str,
    day: date,
    start_time: str,
    barber_name: str,
) -> str:
    return "\n".join(
        [
            f"🪒 *{config.shop_name}*",
            "",
            f"Hi {client_name}! 👋",
            "",
            "⏰ A reminder of your appointment:",
            f"📅 {_day_label(day)}",
            f"🕒 {start_time}",
            f"👨‍💼 Barber: {barber_name}",
            "",
            "We look forward to seeing you! 💈",
            "",
            "To cancel or change your appointment, reply to this message.",
        ]
    )


def whatsapp_status() -> dict:
    return {
        "configured": settings.whatsapp_configured,
        "api_url": "***configured***" if settings.whatsapp_api_url else None,
        "ready": settings.whatsapp_configured,
    }
