# ezrent/controllers/payment_controller.py

from flask import Blueprint, request, jsonify

from ezrent.repositories.booking_repo import BookingRepo
from ezrent.services.payment_service import PaymentService
from ezrent.services.pricing_service import legacy_amount
from ezrent.utils.dates import parse_datetime
from ezrent.utils.decorators import json_error, service_errors

payment_bp = Blueprint("payment", __name__)


def _amount_from_request(data: dict):
    """amount -> booking grand total -> day-count over itemDetails.pricePerDay."""
    if data.get("amount") not in (None, ""):
        return data["amount"]

    if data.get("bookingId"):
        booking = BookingRepo.get(data["bookingId"])
        if booking and booking.grand_total is not None:
            return booking.grand_total

    item = data.get("itemDetails") or {}
    pickup = parse_datetime(data.get("pickupDate"))
    returned = parse_datetime(data.get("returnDate"))
    if item.get("pricePerDay") not in (None, "") and pickup and returned:
        _days, total = legacy_amount(pickup, returned, item["pricePerDay"])
        return total
    return None


@payment_bp.post("/gcash")
@service_errors
def gcash_payment():
    """Redirect checkout: the client opens checkout_url in an external browser."""
    data = request.get_json(silent=True) or {}
    amount = _amount_from_request(data)
    if amount is None:
        return json_error("amount is required", 400)

    name = (data.get("itemDetails") or {}).get("title") or data.get("description") or "Rental Item"
    checkout_url = PaymentService.create_checkout(amount, name)
    return jsonify({"success": True, "checkout_url": checkout_url})


@payment_bp.post("/qrph")
@service_errors
def qrph_payment():
    data = request.get_json(silent=True) or {}
    amount = _amount_from_request(data)
    if amount is None:
        return json_error("amount is required", 400)

    result = PaymentService.create_qr_payment(amount, data.get("description") or "EzRent rental")
    return jsonify({"success": True, **result})


@payment_bp.get("/status/<intent_id>")
@service_errors
def payment_status(intent_id):
    return jsonify({"success": True, "status": PaymentService.get_status(intent_id)})
