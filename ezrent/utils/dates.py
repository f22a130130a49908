from datetime import datetime

from ezrent.services.pricing_service import to_rental_local


def parse_datetime(value, utc_offset_hours: int = 8) -> datetime | None:
    """ISO string or datetime -> naive datetime on the rental calendar."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    return to_rental_local(dt, utc_offset_hours).replace(tzinfo=None)
