# ezrent/controllers/return_controller.py

from flask import Blueprint, request, jsonify

from ezrent.services.booking_service import BookingService
from ezrent.services.notification_service import NotificationService
from ezrent.utils.decorators import json_error, service_errors

return_bp = Blueprint("return", __name__)


@return_bp.put("/item-returned")
@service_errors
def item_returned():
    data = request.get_json(silent=True) or {}
    booking_id = data.get("bookingId")
    if not booking_id:
        return json_error("Booking ID is required", 400)

    history, available = BookingService.return_item(booking_id)
    return jsonify({
        "success": True,
        "message": "Item returned successfully",
        "data": {
            "history": history.to_dict(),
            "itemAvailableQuantity": available,
        }
    })


@return_bp.post("/notify-customer")
@service_errors
def notify_customer():
    data = request.get_json(silent=True) or {}
    if not data.get("bookingId") or not data.get("message"):
        return json_error("Booking ID and message are required", 400)

    result = NotificationService.notify_customer_return(data["bookingId"], data["message"])
    return jsonify({"success": True, "message": "Customer notified successfully", "data": result})
