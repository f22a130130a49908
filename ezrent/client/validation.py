"""Intake checks run before a booking leaves the device."""
import re
from datetime import datetime

PHONE_RE = re.compile(r"^(09\d{9}|\+639\d{9})$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CUSTOMER_FIELDS = {
    "fullName": "your full name",
    "email": "your email address",
    "phone": "your contact number",
    "location": "your location",
    "gender": "your gender",
}

GUARANTOR_FIELDS = {
    "FullName": "full name",
    "PhoneNumber": "phone number",
    "Address": "address",
    "Email": "email",
}


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_booking_form(form: dict) -> list[str]:
    """Returns human-readable problems; an empty list means the form may be submitted."""
    errors = []

    for key, label in CUSTOMER_FIELDS.items():
        if _blank(form.get(key)):
            errors.append(f"Please enter {label}")

    for n in (1, 2):
        for suffix, label in GUARANTOR_FIELDS.items():
            if _blank(form.get(f"guarantor{n}{suffix}")):
                errors.append(f"Please enter guarantor {n} {label}")

    phones = [("Contact number", form.get("phone"))] + [
        (f"Guarantor {n} phone number", form.get(f"guarantor{n}PhoneNumber")) for n in (1, 2)
    ]
    for label, value in phones:
        if not _blank(value) and not PHONE_RE.match(str(value).strip().replace(" ", "")):
            errors.append(f"{label} must look like 09XXXXXXXXX or +639XXXXXXXXX")

    emails = [("Email address", form.get("email"))] + [
        (f"Guarantor {n} email", form.get(f"guarantor{n}Email")) for n in (1, 2)
    ]
    for label, value in emails:
        if not _blank(value) and not EMAIL_RE.match(str(value).strip()):
            errors.append(f"{label} is not a valid email")

    pickup, returned = form.get("pickupDate"), form.get("returnDate")
    if not isinstance(pickup, datetime) or not isinstance(returned, datetime):
        errors.append("Please choose pick-up and return dates")
    elif returned < pickup:
        errors.append("Return date cannot be before the pick-up date")

    if form.get("period") not in ("Hour", "Day", "Week"):
        errors.append("Please choose a rental period")

    return errors
