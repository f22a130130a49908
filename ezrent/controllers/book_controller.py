# ezrent/controllers/book_controller.py

from flask import Blueprint, request, jsonify

from ezrent.repositories.booking_repo import BookingRepo
from ezrent.services.booking_service import BookingService
from ezrent.services.booking_state_machine import BookingEvent, BookingStatus
from ezrent.services.notification_service import NotificationService
from ezrent.tasks.rental_monitor import rental_now, scan_rentals
from ezrent.utils.decorators import service_errors

book_bp = Blueprint("book", __name__)

S = BookingStatus


def _listing(rows):
    return jsonify({"success": True, "data": [b.to_dict() for b in rows]})


# -----------------------------
# Customer
# -----------------------------
@book_bp.post("/book-item")
@service_errors
def book_item():
    data = request.get_json(silent=True) or {}
    booking, rental_days = BookingService.create_booking(data)
    return jsonify({
        "success": True,
        "message": "Booking saved successfully",
        "bookingId": booking.id,
        "rentalDays": rental_days,
        "totalAmount": float(booking.amount),
        "pricePerDay": float(booking.price_per_day),
        "grandTotal": float(booking.grand_total),
        "data": booking.to_dict(),
    }), 201


@book_bp.put("/book-item/update/<booking_id>")
@service_errors
def book_item_update(booking_id):
    data = request.get_json(silent=True) or {}
    booking = BookingService.update_booking(booking_id, data)
    return jsonify({"success": True, "message": "Booking updated", "data": booking.to_dict()})


@book_bp.post("/quote")
@service_errors
def quote():
    data = request.get_json(silent=True) or {}
    return jsonify({"success": True, "data": BookingService.quote(data)})


@book_bp.get("/notification/<int:customer_id>")
def book_notification(customer_id: int):
    return _listing(BookingRepo.list_by_customer(customer_id))


@book_bp.get("/booked-items/<int:customer_id>")
def booked_items(customer_id: int):
    return _listing(BookingRepo.list_by_customer(
        customer_id, statuses=[S.BOOKED.value, S.APPROVED.value, S.APPROVED_TO_RENT.value, S.ONGOING.value]
    ))


@book_bp.get("/ongoing-for-approval-customer/<int:customer_id>")
def ongoing_for_approval_customer(customer_id: int):
    return _listing(BookingRepo.list_by_customer(customer_id, statuses=[S.PENDING.value, S.ONGOING.value]))


@book_bp.put("/notification/<booking_id>/read")
@service_errors
def mark_as_read(booking_id):
    booking = BookingService.mark_as_read(booking_id)
    return jsonify({"success": True, "data": {"id": booking.id, "isRead": True, "readAt": booking.read_at.isoformat()}})


@book_bp.get("/notification/<int:customer_id>/unread-count")
def unread_count(customer_id: int):
    return jsonify({"success": True, "data": {"count": BookingRepo.count_unread(customer_id)}})


@book_bp.delete("/notification/cleanup/<int:customer_id>")
@service_errors
def cleanup_notifications(customer_id: int):
    removed = NotificationService.cleanup_customer_logs(customer_id)
    return jsonify({"success": True, "message": f"Removed {removed} old notification(s)", "data": {"removed": removed}})


@book_bp.delete("/delete/<booking_id>")
@service_errors
def delete_booking(booking_id):
    BookingService.delete_booking(booking_id)
    return jsonify({"success": True, "message": "Booking deleted"})


# -----------------------------
# Transitions (one endpoint per event)
# -----------------------------
TRANSITION_ROUTES = {
    "cancel": BookingEvent.CANCEL,
    "request": BookingEvent.REQUEST,
    "approve": BookingEvent.APPROVE,
    "approve-booking": BookingEvent.APPROVE,
    "reject": BookingEvent.REJECT,
    "approve-request": BookingEvent.APPROVE_REQUEST,
    "reject-request": BookingEvent.REJECT_REQUEST,
    "reject-booking": BookingEvent.REJECT_BOOKING,
    "start": BookingEvent.START,
    "start-rent": BookingEvent.START,
    "terminate": BookingEvent.TERMINATE,
    "terminate-booking": BookingEvent.TERMINATE,
    "submit": BookingEvent.SUBMIT,
}


def _make_transition_view(event: BookingEvent):
    @service_errors
    def view(booking_id):
        booking, changed = BookingService.transition(booking_id, event)
        return jsonify({
            "success": True,
            "message": f"Booking {booking.status}" if changed else f"Booking already {booking.status}",
            "changed": changed,
            "data": booking.to_dict(),
        })
    return view


for _path, _event in TRANSITION_ROUTES.items():
    book_bp.add_url_rule(
        f"/{_path}/<booking_id>",
        endpoint=f"transition_{_path.replace('-', '_')}",
        view_func=_make_transition_view(_event),
        methods=["PUT"],
    )


# -----------------------------
# Owner
# -----------------------------
@book_bp.get("/book-request/<int:owner_id>")
def fetch_book_request(owner_id: int):
    return _listing(BookingRepo.list_by_owner(owner_id, statuses=[S.PENDING.value]))


@book_bp.get("/ongoing-book/<int:owner_id>")
def ongoing_book(owner_id: int):
    return _listing(BookingRepo.list_by_owner(owner_id, statuses=[S.ONGOING.value]))


@book_bp.get("/booked-item-approval/<int:owner_id>")
def booked_item_for_approval(owner_id: int):
    return _listing(BookingRepo.list_by_owner(
        owner_id, statuses=[S.BOOKED.value, S.APPROVED.value, S.APPROVED_TO_RENT.value]
    ))


@book_bp.get("/ongoing-for-approval/<int:owner_id>")
def ongoing_for_approval(owner_id: int):
    return _listing(BookingRepo.list_by_owner(owner_id, statuses=[S.PENDING.value, S.ONGOING.value]))


# -----------------------------
# Admin / monitoring
# -----------------------------
@book_bp.get("/fetch-bookings")
def fetch_all_bookings():
    return _listing(BookingRepo.list_all())


@book_bp.get("/ongoing-book/admin")
def ongoing_book_admin():
    return _listing(BookingRepo.list_by_statuses([S.ONGOING.value]))


@book_bp.get("/ongoing-terminated/admin")
def booking_receipts():
    return _listing(BookingRepo.list_by_statuses([S.ONGOING.value, S.TERMINATED.value]))


@book_bp.get("/rental-status/<booking_id>")
@service_errors
def rental_status(booking_id):
    return jsonify({"success": True, "data": BookingService.rental_status(booking_id)})


@book_bp.get("/late-rentals")
def late_rentals():
    return _listing(BookingRepo.find_late(rental_now()))


@book_bp.post("/monitor-rentals")
@service_errors
def trigger_rental_monitoring():
    return jsonify({"success": True, "data": scan_rentals()})
