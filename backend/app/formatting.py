# Overview: Spanish (Chile) display formatting for order summaries.

from __future__ import annotations

from datetime import datetime

MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


def format_long_date_es(dt: datetime) -> str:
    """
    Long Spanish date with 12-hour clock.

    2025-07-13 23:57 -> "13 de julio de 2025, 11:57 p. m."
    """
    hour = dt.hour % 12 or 12
    meridiem = "a. m." if dt.hour < 12 else "p. m."
    return f"{dt.day} de {MONTHS_ES[dt.month - 1]} de {dt.year}, {hour}:{dt.minute:02d} {meridiem}"


def format_clp(amount: int) -> str:
    """Chilean pesos, no decimals, dot as thousands separator: 5500 -> "$5.500"."""
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}${grouped}"


def format_order_number(order_id: int) -> str:
    return f"ORD-{order_id:03d}"
