"""Rental pricing.

Pure functions: no database, no Flask context. The same rules run on the
server (booking submission, approval recompute, quote endpoint) and in the
Python client before a booking is submitted.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")

HOUR = "Hour"
DAY = "Day"
WEEK = "Week"

PERIOD_UNITS = {
    HOUR: timedelta(hours=1),
    DAY: timedelta(days=1),
    WEEK: timedelta(weeks=1),
}

RATE_LABELS = {
    HOUR: "Rate Per Hour",
    DAY: "Rate Per Day",
    WEEK: "Rate Per Week",
}


@dataclass(frozen=True)
class RentalQuote:
    rate_label: str
    rate: Decimal          # per-unit rate, rounded for display
    duration: int          # whole units of `period`
    period: str            # effective period (Hour for same-day rentals)
    subtotal: Decimal
    delivery_fee: Decimal
    grand_total: Decimal
    same_day: bool = False

    def to_dict(self) -> dict:
        return {
            "rateLabel": self.rate_label,
            "rate": float(self.rate),
            "duration": self.duration,
            "period": self.period,
            "subtotal": float(self.subtotal),
            "deliveryFee": float(self.delivery_fee),
            "grandTotal": float(self.grand_total),
            "sameDay": self.same_day,
        }


def to_money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    try:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None


def normalize_period(period: str | None) -> str:
    label = str(period or "").strip().capitalize()
    if label not in PERIOD_UNITS:
        raise ValueError(f"Unsupported rental period: {period!r}")
    return label


def rental_calendar(utc_offset_hours: int = 8) -> timezone:
    return timezone(timedelta(hours=utc_offset_hours))


def to_rental_local(value: datetime, utc_offset_hours: int = 8) -> datetime:
    """Aware datetimes are moved onto the rental calendar; naive ones are taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(rental_calendar(utc_offset_hours))


def is_same_day(pickup: datetime, returned: datetime, utc_offset_hours: int = 8) -> bool:
    return to_rental_local(pickup, utc_offset_hours).date() == to_rental_local(returned, utc_offset_hours).date()


def count_units(pickup: datetime, returned: datetime, unit: timedelta) -> int:
    """ceil(elapsed / unit), never less than 1."""
    elapsed = returned - pickup
    if elapsed <= timedelta(0):
        return 1
    whole, remainder = divmod(elapsed, unit)
    return max(1, whole + (1 if remainder else 0))


def compute_quote(
    period: str,
    pickup_date: datetime | None,
    return_date: datetime | None,
    base_price_per_day,
    delivery_fee=0,
    duration_hint: int | None = None,
    utc_offset_hours: int = 8,
) -> RentalQuote:
    selected = normalize_period(period)
    base = to_money(base_price_per_day)
    fee = to_money(delivery_fee)

    if pickup_date is None or return_date is None:
        duration = max(1, int(duration_hint or 1))
        return _quote(selected, base, Decimal(1), duration, fee, same_day=False)

    if is_same_day(pickup_date, return_date, utc_offset_hours):
        # same calendar day: always billed hourly at a 24th of the daily price
        duration = count_units(pickup_date, return_date, PERIOD_UNITS[HOUR])
        return _quote(HOUR, base, Decimal(24), duration, fee, same_day=True)

    # Hour branch uses the stored price as-is (per-hour figure)
    duration = count_units(pickup_date, return_date, PERIOD_UNITS[selected])
    return _quote(selected, base, Decimal(1), duration, fee, same_day=False)


def _quote(period, base, divisor, duration, fee, same_day) -> RentalQuote:
    # multiply before dividing so 500 * 6 / 24 lands on 125.00, not 124.98
    subtotal = to_money(base * duration / divisor)
    return RentalQuote(
        rate_label=RATE_LABELS[period],
        rate=to_money(base / divisor),
        duration=duration,
        period=period,
        subtotal=subtotal,
        delivery_fee=fee,
        grand_total=to_money(subtotal + fee),
        same_day=same_day,
    )


def legacy_rental_days(pickup_date: datetime, return_date: datetime) -> int:
    return count_units(pickup_date, return_date, PERIOD_UNITS[DAY])


def legacy_amount(pickup_date: datetime, return_date: datetime, price_per_day) -> tuple[int, Decimal]:
    """Day-count total kept in the ``amount`` column and returned by booking submission."""
    days = legacy_rental_days(pickup_date, return_date)
    return days, to_money(to_money(price_per_day) * days)
