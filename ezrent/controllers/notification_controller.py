# ezrent/controllers/notification_controller.py

from flask import Blueprint, request, jsonify

from ezrent.repositories.notification_repo import NotificationRepo
from ezrent.services.notification_service import NotificationService
from ezrent.utils.decorators import json_error, service_errors

notif_bp = Blueprint("notifications", __name__)


@notif_bp.post("/notify-owner")
@service_errors
def notify_owner():
    data = request.get_json(silent=True) or {}
    if not data.get("bookingId"):
        return json_error("bookingId is required.", 400)

    result = NotificationService.notify_owner_payment_pending(data["bookingId"])
    return jsonify({
        "success": True,
        "message": f"Notification sent to {result['ownerName']} at {result['ownerEmail']}",
        "data": result,
    })


@notif_bp.get("/logs/<booking_id>")
def booking_logs(booking_id):
    rows = NotificationRepo.list_for_booking(booking_id)
    return jsonify({"success": True, "data": [
        {
            "id": n.id,
            "type": n.type,
            "email": n.email,
            "subject": n.subject,
            "success": bool(n.success),
            "error": n.error_message,
            "sentAt": n.sent_at.isoformat(),
        } for n in rows
    ]})
