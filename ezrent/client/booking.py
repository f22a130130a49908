"""Builds the booking submission from a validated form."""
from __future__ import annotations

from ezrent.client.validation import validate_booking_form
from ezrent.exceptions import BookingValidationError
from ezrent.services.delivery_service import ZERO_ESTIMATE, DeliveryEstimate, DeliveryFeeResolver
from ezrent.services.pricing_service import RentalQuote, compute_quote


def estimate_delivery(form: dict, item: dict, resolver: DeliveryFeeResolver | None) -> DeliveryEstimate:
    if resolver is None or not form.get("barangay") or not item.get("location"):
        return ZERO_ESTIMATE
    return resolver.calculate(form["barangay"], item["location"], town=form.get("town"), province=form.get("province"))


def prepare_booking(form: dict, item: dict, customer_id: int,
                    resolver: DeliveryFeeResolver | None = None,
                    utc_offset_hours: int = 8) -> tuple[RentalQuote, dict]:
    """Validates, prices and returns (quote, POST /book-item payload)."""
    errors = validate_booking_form(form)
    if errors:
        raise BookingValidationError(errors)

    estimate = estimate_delivery(form, item, resolver)
    quote = compute_quote(
        form["period"], form["pickupDate"], form["returnDate"], item["pricePerDay"],
        delivery_fee=estimate.delivery_fee, utc_offset_hours=utc_offset_hours,
    )

    payload = {
        "itemId": item["id"],
        "ownerId": item.get("ownerId"),
        "customerId": customer_id,
        "paymentMethod": form.get("paymentMethod"),
        "itemDetails": {
            "title": item.get("title"),
            "category": item.get("category"),
            "location": item.get("location"),
            "pricePerDay": float(item["pricePerDay"]),
            "itemImage": item.get("itemImage"),
        },
        "customerDetails": {k: form.get(k) for k in ("fullName", "email", "phone", "location", "gender")},
        "rentalDetails": {
            "period": form["period"],
            "pickupDate": form["pickupDate"].isoformat(),
            "returnDate": form["returnDate"].isoformat(),
            "rentalDuration": quote.duration,
            "ratePerPeriod": float(quote.rate),
            "deliveryCharge": float(quote.delivery_fee),
            "grandTotal": float(quote.grand_total),
        },
    }
    for n in (1, 2):
        for suffix in ("FullName", "PhoneNumber", "Address", "Email"):
            payload[f"guarantor{n}{suffix}"] = form.get(f"guarantor{n}{suffix}")
    return quote, payload
