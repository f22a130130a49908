"""Tests for BookingService."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest

from ezrent.exceptions import BookingNotFound, BookingValidationError, IllegalTransition, ItemNotFound
from ezrent.extensions import db, mail
from ezrent.models import Booking, History, NotificationLog
from ezrent.services.booking_service import BookingService
from ezrent.services.delivery_service import DeliveryFeeResolver


def _sent(booking_id, notif_type):
    return NotificationLog.query.filter_by(booking_id=booking_id, type=notif_type).all()


class TestCreateBooking:
    """Tests for booking submission."""

    def test_prices_and_snapshots(self, app, booking_payload, item):
        """Submission copies the item and customer and prices the rental."""
        booking, rental_days = BookingService.create_booking(booking_payload())

        assert rental_days == 2
        assert booking.status == "pending"
        assert booking.product == "Canon EOS 90D"
        assert booking.price_per_day == Decimal("500.00")
        assert booking.owner_id == item.owner_id
        assert booking.name == "Juan Cruz"
        assert booking.amount == Decimal("1000.00")
        assert booking.rental_duration == 2
        assert booking.rate_per_period == Decimal("500.00")
        assert booking.delivery_charge == Decimal("25.00")
        assert booking.grand_total == Decimal("1025.00")
        assert booking.payment_status == "unpaid"
        assert booking.guarantor2_full_name == "Leo Cruz"

    def test_same_day_booking(self, app, booking_payload):
        """A same-day booking is billed by the hour."""
        booking, rental_days = BookingService.create_booking(booking_payload(
            pickupDate="2025-03-10T09:00:00", returnDate="2025-03-10T15:00:00", deliveryCharge=0,
        ))

        assert rental_days == 1
        assert booking.rental_duration == 6
        assert booking.rate_per_period == Decimal("20.83")
        assert booking.grand_total == Decimal("125.00")
        # day-count total is still what the legacy amount column holds
        assert booking.amount == Decimal("500.00")

    def test_utc_dates_land_on_rental_calendar(self, app, booking_payload):
        """ISO 'Z' dates are stored as local rental time."""
        booking, _ = BookingService.create_booking(booking_payload(
            pickupDate="2025-03-10T01:00:00Z", returnDate="2025-03-10T07:00:00Z",
        ))

        assert booking.pick_up_date == datetime(2025, 3, 10, 9)
        assert booking.rental_duration == 6

    def test_snapshot_survives_item_edit(self, app, booking_payload, item):
        """Editing the item later does not change the booking."""
        booking, _ = BookingService.create_booking(booking_payload())

        item.title = "Canon EOS R6"
        item.price_per_day = Decimal("900.00")
        db.session.commit()

        fresh = db.session.get(Booking, booking.id)
        assert fresh.product == "Canon EOS 90D"
        assert fresh.price_per_day == Decimal("500.00")
        assert fresh.item_snapshot.product == "Canon EOS 90D"
        assert fresh.customer_snapshot.email == "juan@example.com"

    def test_sends_submitted_mail(self, app, booking_payload, owner):
        """Customer and owner both get notified of a new request."""
        booking, _ = BookingService.create_booking(booking_payload())

        assert len(_sent(booking.id, "booking_submitted")) == 1
        received = _sent(booking.id, "booking_received")
        assert len(received) == 1
        assert received[0].email == owner.email

    def test_cart_booking_sends_nothing(self, app, booking_payload):
        """A cart entry is not a request yet."""
        payload = booking_payload()
        payload["status"] = "cart"

        booking, _ = BookingService.create_booking(payload)

        assert booking.status == "cart"
        assert NotificationLog.query.count() == 0

    def test_missing_fields(self, app):
        """Every missing required field is reported at once."""
        with pytest.raises(BookingValidationError) as exc:
            BookingService.create_booking({"rentalDetails": {"period": "Month"}})

        errors = exc.value.errors
        assert "itemId is required" in errors
        assert "customerDetails.email is required" in errors
        assert any("Month" in e for e in errors)

    def test_non_string_customer_fields(self, app, booking_payload):
        """JSON numbers are stored as text; objects count as missing."""
        payload = booking_payload()
        payload["customerDetails"]["phone"] = 9171234567

        booking, _ = BookingService.create_booking(payload)

        assert booking.phone == "9171234567"

        payload["customerDetails"]["fullName"] = {"first": "Juan"}
        with pytest.raises(BookingValidationError) as exc:
            BookingService.create_booking(payload)
        assert exc.value.errors == ["customerDetails.fullName is required"]

    def test_unknown_item_without_details(self, app, booking_payload):
        """An item id that does not exist needs itemDetails to price from."""
        payload = booking_payload()
        payload["itemId"] = 9999

        with pytest.raises(ItemNotFound):
            BookingService.create_booking(payload)

    def test_unknown_item_with_details(self, app, booking_payload, owner):
        """itemDetails stand in for a missing item row."""
        payload = booking_payload()
        payload.update({
            "itemId": 9999,
            "ownerId": owner.id,
            "itemDetails": {"title": "Tent", "category": "Outdoor", "location": "Antipolo", "pricePerDay": 300},
        })

        booking, _ = BookingService.create_booking(payload)

        assert booking.product == "Tent"
        assert booking.grand_total == Decimal("625.00")

    def test_mail_failure_does_not_block_booking(self, app, booking_payload):
        """SMTP errors are logged, the booking is still saved."""
        with patch.object(mail, "send", side_effect=RuntimeError("smtp down")):
            booking, _ = BookingService.create_booking(booking_payload())

        assert db.session.get(Booking, booking.id) is not None
        log = _sent(booking.id, "booking_submitted")[0]
        assert log.success is False
        assert "smtp down" in log.error_message


class TestTransition:
    """Tests for BookingService.transition."""

    def test_approve(self, app, make_booking):
        """approve moves pending to approved and emails the customer."""
        booking = make_booking()

        booking, changed = BookingService.transition(booking.id, "approve")

        assert changed is True
        assert booking.status == "approved"
        assert len(_sent(booking.id, "booking_approved")) == 1

    def test_repeat_is_noop(self, app, make_booking):
        """Approving twice changes nothing and sends one email."""
        booking = make_booking()
        BookingService.transition(booking.id, "approve")

        booking, changed = BookingService.transition(booking.id, "approve")

        assert changed is False
        assert booking.status == "approved"
        assert len(_sent(booking.id, "booking_approved")) == 1

    def test_approve_recomputes_totals(self, app, make_booking):
        """Approval reprices from the snapshot."""
        booking = make_booking()
        booking.grand_total = None
        booking.rental_duration = None
        db.session.commit()

        booking, _ = BookingService.transition(booking.id, "approve")

        assert booking.grand_total == Decimal("1025.00")
        assert booking.rental_duration == 2

    def test_illegal(self, app, make_booking):
        """start on a pending booking is refused and nothing changes."""
        booking = make_booking()

        with pytest.raises(IllegalTransition):
            BookingService.transition(booking.id, "start")

        assert db.session.get(Booking, booking.id).status == "pending"

    def test_missing_booking(self, app):
        """Unknown ids raise BookingNotFound."""
        with pytest.raises(BookingNotFound):
            BookingService.transition("does-not-exist", "approve")

    def test_terminate_keeps_row(self, app, make_booking):
        """Terminated bookings stay in the bookings table."""
        booking = make_booking(status="ongoing")

        BookingService.transition(booking.id, "terminate")

        fresh = db.session.get(Booking, booking.id)
        assert fresh is not None
        assert fresh.status == "terminated"
        assert History.query.count() == 0

    def test_mail_failure_keeps_transition(self, app, make_booking):
        """A failed email never rolls the status back."""
        booking = make_booking()

        with patch.object(mail, "send", side_effect=RuntimeError("smtp down")):
            BookingService.transition(booking.id, "reject")

        assert db.session.get(Booking, booking.id).status == "rejected"

    def test_return_is_not_a_plain_transition(self, app, make_booking):
        """Returns go through return_item."""
        booking = make_booking(status="ongoing")

        with pytest.raises(ValueError):
            BookingService.transition(booking.id, "return")


class TestReturnItem:
    """Tests for BookingService.return_item."""

    def test_archives_and_restocks(self, app, make_booking, item):
        """One history row, one fewer booking, one more available unit."""
        booking = make_booking(status="ongoing")
        booking_id = booking.id
        before = Booking.query.count()

        history, available = BookingService.return_item(booking_id)

        assert available == 2
        assert item.available_quantity == 2
        assert Booking.query.count() == before - 1
        assert History.query.count() == 1
        assert history.booking_id == booking_id
        assert history.status == "terminated"
        assert history.product == "Canon EOS 90D"
        assert history.grand_total == Decimal("1025.00")

    def test_requires_ongoing(self, app, make_booking, item):
        """Returning a booking that never started is refused."""
        booking = make_booking(status="approved")

        with pytest.raises(IllegalTransition):
            BookingService.return_item(booking.id)

        assert History.query.count() == 0
        assert item.available_quantity == 1

    def test_missing_item(self, app, make_booking):
        """A booking whose item is gone cannot be settled."""
        booking = make_booking(status="ongoing")
        booking.item_id = 9999
        db.session.commit()

        with pytest.raises(ItemNotFound):
            BookingService.return_item(booking.id)

        assert db.session.get(Booking, booking.id) is not None

    def test_failure_rolls_back(self, app, make_booking, item):
        """Restock, archive and delete land together or not at all."""
        booking = make_booking(status="ongoing")
        booking_id = booking.id

        with patch("ezrent.services.booking_service.HistoryRepo.add", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                BookingService.return_item(booking_id)

        assert db.session.get(Booking, booking_id) is not None
        assert History.query.count() == 0
        assert db.session.get(type(item), item.id).available_quantity == 1


class TestUpdateBooking:
    """Tests for BookingService.update_booking."""

    def test_paid_moves_to_booked(self, app, make_booking):
        """Recording a QR payment books an approved request."""
        booking = make_booking(status="approved")

        booking = BookingService.update_booking(booking.id, {"paymentIntentId": "pi_123", "paymentStatus": "paid"})

        assert booking.payment_status == "paid"
        assert booking.payment_intent_id == "pi_123"
        assert booking.status == "booked"
        assert len(_sent(booking.id, "payment_received")) == 1
        assert len(_sent(booking.id, "payment_received_owner")) == 1

    def test_paid_on_ongoing_keeps_status(self, app, make_booking):
        """Payment on a started rental only records the payment."""
        booking = make_booking(status="ongoing")

        booking = BookingService.update_booking(booking.id, {"paymentStatus": "paid"})

        assert booking.payment_status == "paid"
        assert booking.status == "ongoing"

    def test_cash_on_delivery(self, app, make_booking):
        """Payment method updates leave the status alone."""
        booking = make_booking()

        booking = BookingService.update_booking(booking.id, {"paymentMethod": "Cash on Delivery"})

        assert booking.payment_method == "Cash on Delivery"
        assert booking.status == "pending"

    def test_date_change_reprices(self, app, make_booking):
        """New dates recompute the totals."""
        booking = make_booking()

        booking = BookingService.update_booking(booking.id, {"returnDate": "2025-03-13T09:00:00"})

        assert booking.rental_duration == 3
        assert booking.grand_total == Decimal("1525.00")

    def test_full_booking_body_reprices(self, app, make_booking, booking_payload):
        """A PUT carrying the whole book-item body applies its rentalDetails."""
        booking = make_booking()

        booking = BookingService.update_booking(
            booking.id, booking_payload(returnDate="2025-03-14T09:00:00", deliveryCharge=99),
        )

        assert booking.return_date == datetime(2025, 3, 14, 9)
        assert booking.rental_duration == 4
        assert booking.delivery_charge == Decimal("99.00")
        assert booking.grand_total == Decimal("2099.00")
        assert booking.name == "Juan Cruz"

    def test_top_level_keys_win(self, app, make_booking):
        """Flat keys override the nested rentalDetails block."""
        booking = make_booking()

        booking = BookingService.update_booking(booking.id, {
            "returnDate": "2025-03-13T09:00:00",
            "rentalDetails": {"returnDate": "2025-03-14T09:00:00"},
        })

        assert booking.rental_duration == 3

    def test_bad_values_leave_booking_alone(self, app, make_booking):
        """Unparseable terms are a validation error and nothing is applied."""
        booking = make_booking()

        with pytest.raises(BookingValidationError):
            BookingService.update_booking(booking.id, {"deliveryCharge": 50, "returnDate": "next week"})
        with pytest.raises(BookingValidationError):
            BookingService.update_booking(booking.id, {"rentalDetails": {"deliveryCharge": "abc"}})

        assert booking.delivery_charge == Decimal("25.00")
        assert booking.return_date == datetime(2025, 3, 12, 9)

    def test_cart_submit(self, app, booking_payload):
        """A cart entry submitted with status pending sends the request emails."""
        payload = booking_payload()
        payload["status"] = "cart"
        booking, _ = BookingService.create_booking(payload)

        booking = BookingService.update_booking(booking.id, {"status": "pending"})

        assert booking.status == "pending"
        assert len(_sent(booking.id, "booking_submitted")) == 1

    def test_guarantors_nested(self, app, make_booking):
        """Nested guarantor blocks are accepted."""
        booking = make_booking()

        booking = BookingService.update_booking(booking.id, {"guarantors": [
            {"fullName": "Rosa Dela Cruz", "phoneNumber": "09201234567", "address": "Cainta", "email": "rosa@example.com"},
        ]})

        assert booking.guarantor1_full_name == "Rosa Dela Cruz"
        assert booking.guarantor2_full_name == "Leo Cruz"


class TestReadTrackingAndStatus:
    """Tests for read flags and rental status."""

    def test_mark_as_read(self, app, make_booking):
        """First read stamps read_at; later reads keep it."""
        booking = make_booking()

        first = BookingService.mark_as_read(booking.id)
        stamp = first.read_at
        second = BookingService.mark_as_read(booking.id)

        assert second.is_read is True
        assert second.read_at == stamp

    def test_rental_status_late(self, app, make_booking):
        """An ongoing booking past its return date is late."""
        booking = make_booking(status="ongoing")

        status = BookingService.rental_status(booking.id, now=datetime(2025, 3, 12, 15))

        assert status["isLate"] is True
        assert status["hoursOverdue"] == 6.0
        assert status["hoursRemaining"] == 0

    def test_rental_status_on_time(self, app, make_booking):
        """Before the return date the remaining hours are reported."""
        booking = make_booking(status="ongoing")

        status = BookingService.rental_status(booking.id, now=datetime(2025, 3, 12, 6))

        assert status["isLate"] is False
        assert status["hoursRemaining"] == 3.0

    def test_delete(self, app, make_booking):
        """Deleted bookings are gone."""
        booking = make_booking()
        booking_id = booking.id

        BookingService.delete_booking(booking_id)

        assert db.session.get(Booking, booking_id) is None
        with pytest.raises(BookingNotFound):
            BookingService.delete_booking(booking_id)


class TestQuote:
    """Tests for BookingService.quote."""

    def test_quote_from_item(self, app, item):
        """itemId supplies the price when pricePerDay is omitted."""
        result = BookingService.quote({
            "itemId": item.id,
            "pickupDate": "2025-03-10T09:00:00",
            "returnDate": "2025-03-10T15:00:00",
        })

        assert result["grandTotal"] == 125.0
        assert result["distanceKm"] == 0.0

    def test_quote_with_delivery(self, app):
        """A barangay triggers the delivery lookup."""
        from ezrent.services.delivery_service import DeliveryEstimate

        estimate = DeliveryEstimate(Decimal("3.20"), Decimal("32.00"))
        with patch("ezrent.services.booking_service.calculate_delivery_fee", return_value=estimate):
            result = BookingService.quote({
                "pricePerDay": 500,
                "pickupDate": "2025-03-10T09:00:00",
                "returnDate": "2025-03-12T09:00:00",
                "itemLocation": "Taytay, Rizal",
                "barangay": "San Roque",
            })

        assert result["deliveryFee"] == 32.0
        assert result["grandTotal"] == 1032.0
        assert result["distanceKm"] == 3.2

    def test_quote_requires_price(self, app):
        """No price and no item is a validation error."""
        with pytest.raises(BookingValidationError):
            BookingService.quote({"pickupDate": "2025-03-10T09:00:00", "returnDate": "2025-03-10T15:00:00"})

    def test_quote_uses_customer_address(self, app, item, customer):
        """Without a barangay the customer's profile address is used."""
        with patch("ezrent.services.booking_service.calculate_delivery_fee") as fee:
            fee.return_value = None
            BookingService.quote({
                "itemId": item.id,
                "customerId": customer.id,
                "pickupDate": "2025-03-10T09:00:00",
                "returnDate": "2025-03-12T09:00:00",
            })

        fee.assert_called_once_with("San Roque", "Taytay, Rizal", town="Angono", province="Rizal")

    def test_quote_unresolved_locations_have_no_fee(self, app):
        """When neither place geocodes, the grand total is the subtotal alone."""
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        resolver = DeliveryFeeResolver(client=client)

        with patch.object(DeliveryFeeResolver, "from_config", return_value=resolver):
            result = BookingService.quote({
                "pricePerDay": 500,
                "pickupDate": "2025-03-10T09:00:00",
                "returnDate": "2025-03-12T09:00:00",
                "itemLocation": "Taytay, Rizal",
                "barangay": "San Roque",
            })

        assert result["deliveryFee"] == 0.0
        assert result["distanceKm"] == 0.0
        assert result["grandTotal"] == result["subtotal"] == 1000.0

    def test_quote_survives_bad_delivery_settings(self, app):
        """A broken per-km rate gives a zero fee instead of an error."""
        app.config["DELIVERY_RATE_PER_KM"] = "ten"

        result = BookingService.quote({
            "pricePerDay": 500,
            "pickupDate": "2025-03-10T09:00:00",
            "returnDate": "2025-03-12T09:00:00",
            "itemLocation": "Taytay, Rizal",
            "barangay": "San Roque",
        })

        assert result["deliveryFee"] == 0.0
        assert result["grandTotal"] == 1000.0

    def test_quote_bad_price(self, app):
        """A non-numeric price is a ValueError, not a decimal error."""
        with pytest.raises(ValueError, match="Invalid amount"):
            BookingService.quote({
                "pricePerDay": "abc",
                "pickupDate": "2025-03-10T09:00:00",
                "returnDate": "2025-03-10T15:00:00",
            })
