"""Tests for the booking, return and history endpoints."""

from datetime import datetime

from ezrent.extensions import db
from ezrent.models import Booking, History, NotificationLog


class TestBookItem:
    """POST /api/book/book-item"""

    def test_created(self, client, booking_payload):
        """Submission answers 201 with the priced booking."""
        resp = client.post("/api/book/book-item", json=booking_payload())

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["message"] == "Booking saved successfully"
        assert body["rentalDays"] == 2
        assert body["totalAmount"] == 1000.0
        assert body["pricePerDay"] == 500.0
        assert body["grandTotal"] == 1025.0
        assert body["data"]["status"] == "pending"
        assert db.session.get(Booking, body["bookingId"]) is not None

    def test_validation_error(self, client):
        """Missing fields answer 400 with every problem listed."""
        resp = client.post("/api/book/book-item", json={})

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert "itemId is required" in body["errors"]

    def test_numeric_phone_is_accepted(self, client, booking_payload):
        """A phone sent as a JSON number is stored as text."""
        payload = booking_payload()
        payload["customerDetails"]["phone"] = 9171234567

        resp = client.post("/api/book/book-item", json=payload)

        assert resp.status_code == 201
        assert resp.get_json()["data"]["phone"] == "9171234567"

    def test_update(self, client, make_booking):

        """PUT update records the payment method."""
        booking = make_booking()

        resp = client.put(f"/api/book/book-item/update/{booking.id}", json={"paymentMethod": "GCash"})

        assert resp.status_code == 200
        assert resp.get_json()["data"]["paymentMethod"] == "GCash"

    def test_update_with_full_booking_body(self, client, make_booking, booking_payload):
        """The cash-on-delivery PUT carries the whole booking and reprices it."""
        booking = make_booking()

        resp = client.put(
            f"/api/book/book-item/update/{booking.id}",
            json=booking_payload(returnDate="2025-03-14T09:00:00", deliveryCharge=99),
        )

        data = resp.get_json()["data"]
        assert resp.status_code == 200
        assert data["returnDate"] == "2025-03-14T09:00:00"
        assert data["deliveryCharge"] == 99.0
        assert data["grandTotal"] == 2099.0

    def test_update_bad_delivery_charge(self, client, make_booking):
        """A non-numeric delivery charge answers 400."""
        booking = make_booking()

        resp = client.put(f"/api/book/book-item/update/{booking.id}", json={"deliveryCharge": "abc"})

        assert resp.status_code == 400

    def test_quote(self, client):

        """The quote endpoint prices without saving anything."""
        resp = client.post("/api/book/quote", json={
            "pricePerDay": 500,
            "pickupDate": "2025-03-10T09:00:00",
            "returnDate": "2025-03-10T15:00:00",
        })

        data = resp.get_json()["data"]
        assert data["rate"] == 20.83
        assert data["duration"] == 6
        assert data["grandTotal"] == 125.0
        assert Booking.query.count() == 0


class TestTransitionEndpoints:
    """PUT /api/book/<event>/<booking_id>"""

    def test_approve(self, client, make_booking):
        """approve answers 200 with the new status."""
        booking = make_booking()

        resp = client.put(f"/api/book/approve/{booking.id}")

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["changed"] is True
        assert body["data"]["status"] == "approved"

    def test_repeat_is_success(self, client, make_booking):
        """A repeated request is a no-op success."""
        booking = make_booking()
        client.put(f"/api/book/approve-booking/{booking.id}")

        resp = client.put(f"/api/book/approve-booking/{booking.id}")

        assert resp.status_code == 200
        assert resp.get_json()["changed"] is False

    def test_legacy_request_flow(self, client, make_booking):
        """approve-request then request books the item."""
        booking = make_booking()

        resp = client.put(f"/api/book/approve-request/{booking.id}")
        assert resp.get_json()["data"]["status"] == "Approved to Rent"

        resp = client.put(f"/api/book/request/{booking.id}")
        assert resp.get_json()["data"]["status"] == "booked"

    def test_illegal_is_conflict(self, client, make_booking):
        """start on a pending booking answers 409."""
        booking = make_booking()

        resp = client.put(f"/api/book/start-rent/{booking.id}")

        assert resp.status_code == 409
        assert resp.get_json()["success"] is False

    def test_missing_is_not_found(self, client, app):
        """Unknown booking answers 404."""
        resp = client.put("/api/book/cancel/nope")

        assert resp.status_code == 404

    def test_terminate(self, client, make_booking):
        """terminate-booking keeps the row."""
        booking = make_booking(status="ongoing")

        resp = client.put(f"/api/book/terminate-booking/{booking.id}")

        assert resp.status_code == 200
        assert db.session.get(Booking, booking.id).status == "terminated"


class TestListings:
    """Customer and owner listings."""

    def test_owner_requests(self, client, make_booking, owner):
        """book-request lists only pending bookings."""
        pending = make_booking()
        make_booking(status="ongoing")

        data = client.get(f"/api/book/book-request/{owner.id}").get_json()["data"]

        assert [b["id"] for b in data] == [pending.id]

    def test_owner_ongoing(self, client, make_booking, owner):
        """ongoing-book lists only ongoing bookings."""
        make_booking()
        ongoing = make_booking(status="ongoing")

        data = client.get(f"/api/book/ongoing-book/{owner.id}").get_json()["data"]

        assert [b["id"] for b in data] == [ongoing.id]

    def test_customer_notifications_and_read(self, client, make_booking, customer):
        """Unread count drops after a booking is read."""
        booking = make_booking()
        make_booking()

        assert len(client.get(f"/api/book/notification/{customer.id}").get_json()["data"]) == 2
        assert client.get(f"/api/book/notification/{customer.id}/unread-count").get_json()["data"]["count"] == 2

        resp = client.put(f"/api/book/notification/{booking.id}/read")
        assert resp.get_json()["data"]["isRead"] is True

        assert client.get(f"/api/book/notification/{customer.id}/unread-count").get_json()["data"]["count"] == 1

    def test_delete(self, client, make_booking):
        """DELETE removes the booking; a second delete is 404."""
        booking = make_booking()

        assert client.delete(f"/api/book/delete/{booking.id}").status_code == 200
        assert client.delete(f"/api/book/delete/{booking.id}").status_code == 404

    def test_late_rentals(self, client, make_booking):
        """Past-due ongoing rentals show up as late."""
        late = make_booking(status="ongoing")

        data = client.get("/api/book/late-rentals").get_json()["data"]

        assert [b["id"] for b in data] == [late.id]


class TestReturnEndpoints:
    """/api/return"""

    def test_item_returned(self, client, make_booking, item):
        """Return archives the booking and restocks the item."""
        booking = make_booking(status="ongoing")
        booking_id = booking.id

        resp = client.put("/api/return/item-returned", json={"bookingId": booking_id})

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["data"]["itemAvailableQuantity"] == 2
        assert body["data"]["history"]["bookingId"] == booking_id
        assert db.session.get(Booking, booking_id) is None
        assert History.query.count() == 1

    def test_item_returned_needs_id(self, client):
        """bookingId is required."""
        resp = client.put("/api/return/item-returned", json={})

        assert resp.status_code == 400

    def test_return_from_pending_is_conflict(self, client, make_booking):
        """Only ongoing rentals can be returned."""
        booking = make_booking()

        resp = client.put("/api/return/item-returned", json={"bookingId": booking.id})

        assert resp.status_code == 409
        assert History.query.count() == 0

    def test_notify_customer(self, client, make_booking):
        """A return reminder goes to the booking's customer."""
        booking = make_booking(status="ongoing")

        resp = client.post("/api/return/notify-customer", json={
            "bookingId": booking.id, "message": "Please return the camera tomorrow.",
        })

        data = resp.get_json()["data"]
        assert resp.status_code == 200
        assert data["sent"] is True
        assert data["customerEmail"] == "juan@example.com"

    def test_notify_customer_needs_message(self, client, make_booking):
        """An empty message is rejected."""
        booking = make_booking()

        resp = client.post("/api/return/notify-customer", json={"bookingId": booking.id})

        assert resp.status_code == 400


class TestHistoryEndpoints:
    """/api/history"""

    def test_fetch_after_return(self, client, make_booking, owner, customer):
        """Settled rentals are listed for owner and customer."""
        booking = make_booking(status="ongoing")
        history_id = client.put(
            "/api/return/item-returned", json={"bookingId": booking.id}
        ).get_json()["data"]["history"]["id"]

        assert client.get(f"/api/history/{history_id}").get_json()["data"]["product"] == "Canon EOS 90D"
        assert len(client.get(f"/api/history/owner/{owner.id}").get_json()["data"]) == 1
        assert len(client.get(f"/api/history/customer/{customer.id}").get_json()["data"]) == 1

    def test_missing_history(self, client, app):
        """Unknown history id answers 404."""
        assert client.get("/api/history/999").status_code == 404


class TestAdminListingsAndCleanup:
    """Admin listings and notification cleanup."""

    def test_ongoing_admin(self, client, make_booking):
        """ongoing-book/admin lists ongoing rentals across owners."""
        make_booking()
        ongoing = make_booking(status="ongoing")
        make_booking(status="terminated")

        data = client.get("/api/book/ongoing-book/admin").get_json()["data"]

        assert [b["id"] for b in data] == [ongoing.id]

    def test_receipts(self, client, make_booking):
        """ongoing-terminated/admin lists ongoing and terminated rentals."""
        make_booking()
        ongoing = make_booking(status="ongoing")
        terminated = make_booking(status="terminated")

        data = client.get("/api/book/ongoing-terminated/admin").get_json()["data"]

        assert {b["id"] for b in data} == {ongoing.id, terminated.id}

    def test_cleanup_removes_old_settled_logs(self, client, make_booking, customer):
        """Old log rows of returned rentals go; live bookings keep theirs."""
        settled = make_booking(status="ongoing")
        settled_id = settled.id
        live = make_booking()
        client.put("/api/return/item-returned", json={"bookingId": settled_id})
        NotificationLog.query.update({"sent_at": datetime(2024, 1, 1)})
        db.session.commit()

        resp = client.delete(f"/api/book/notification/cleanup/{customer.id}")

        assert resp.status_code == 200
        assert resp.get_json()["data"]["removed"] == 2
        assert NotificationLog.query.filter_by(booking_id=settled_id).count() == 0
        assert NotificationLog.query.filter_by(booking_id=live.id).count() == 2

    def test_cleanup_keeps_recent_logs(self, client, make_booking, customer):
        """Rows inside the retention window stay."""
        booking = make_booking(status="ongoing")
        booking_id = booking.id
        client.put("/api/return/item-returned", json={"bookingId": booking_id})

        resp = client.delete(f"/api/book/notification/cleanup/{customer.id}")

        assert resp.get_json()["data"]["removed"] == 0
        assert NotificationLog.query.filter_by(booking_id=booking_id).count() == 2
