from datetime import datetime, timezone
from decimal import Decimal

from flask import current_app

from ezrent.exceptions import BookingNotFound, BookingValidationError, ItemNotFound
from ezrent.extensions import db
from ezrent.models.booking import Booking, CustomerSnapshot, ItemSnapshot, GUARANTOR_COLUMNS, SNAPSHOT_COLUMNS
from ezrent.models.history import History
from ezrent.repositories.booking_repo import BookingRepo
from ezrent.repositories.history_repo import HistoryRepo
from ezrent.repositories.item_repo import ItemRepo
from ezrent.repositories.user_repo import CustomerRepo, OwnerRepo
from ezrent.services import booking_state_machine as sm
from ezrent.services.booking_state_machine import BookingEvent, BookingStatus
from ezrent.services.delivery_service import calculate_delivery_fee
from ezrent.services.mail_service import MailService
from ezrent.services.pricing_service import compute_quote, legacy_amount, normalize_period, to_money
from ezrent.utils.dates import parse_datetime

# camelCase payload key -> column
GUARANTOR_KEYS = {
    "guarantor1FullName": "guarantor1_full_name",
    "guarantor1PhoneNumber": "guarantor1_phone_number",
    "guarantor1Address": "guarantor1_address",
    "guarantor1Email": "guarantor1_email",
    "guarantor2FullName": "guarantor2_full_name",
    "guarantor2PhoneNumber": "guarantor2_phone_number",
    "guarantor2Address": "guarantor2_address",
    "guarantor2Email": "guarantor2_email",
}

# History gets every shared column of the booking
ARCHIVED_COLUMNS = (
    ("item_id", "customer_id", "owner_id")
    + SNAPSHOT_COLUMNS
    + ("rental_period", "pick_up_date", "return_date", "payment_method",
       "amount", "rental_duration", "rate_per_period", "delivery_charge", "grand_total",
       "payment_intent_id", "payment_status", "is_read", "read_at", "created_at")
    + GUARANTOR_COLUMNS
)


def _offset() -> int:
    return int(current_app.config.get("RENTAL_UTC_OFFSET_HOURS", 8))


def _guarantors(data: dict) -> dict:
    """Accepts flat guarantor1FullName keys or nested guarantors[0..1] blocks."""
    values = {col: data.get(key) for key, col in GUARANTOR_KEYS.items() if data.get(key) is not None}
    for idx, block in enumerate((data.get("guarantors") or [])[:2], start=1):
        block = block or {}
        values.setdefault(f"guarantor{idx}_full_name", block.get("fullName"))
        values.setdefault(f"guarantor{idx}_phone_number", block.get("phoneNumber") or block.get("phone"))
        values.setdefault(f"guarantor{idx}_address", block.get("address"))
        values.setdefault(f"guarantor{idx}_email", block.get("email"))
    return values


def _text(value) -> str:
    """JSON scalars as stripped text; objects and arrays count as blank."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


class BookingService:
    @staticmethod
    def get_booking(booking_id: str) -> Booking:
        booking = BookingRepo.get(booking_id)
        if not booking:
            raise BookingNotFound(booking_id)
        return booking

    # -----------------------------
    # Pricing
    # -----------------------------
    @staticmethod
    def _apply_pricing(booking: Booking) -> None:
        quote = compute_quote(
            booking.rental_period,
            booking.pick_up_date,
            booking.return_date,
            booking.price_per_day,
            delivery_fee=booking.delivery_charge,
            utc_offset_hours=_offset(),
        )
        _days, amount = legacy_amount(booking.pick_up_date, booking.return_date, booking.price_per_day)
        booking.amount = amount
        booking.rental_duration = quote.duration
        booking.rate_per_period = quote.rate
        booking.grand_total = quote.grand_total

    # -----------------------------
    # Create / update
    # -----------------------------
    @staticmethod
    def create_booking(data: dict) -> tuple[Booking, int]:
        item_details = data.get("itemDetails") or {}
        customer_details = data.get("customerDetails") or {}
        rental_details = data.get("rentalDetails") or {}

        errors = []
        if data.get("itemId") in (None, ""):
            errors.append("itemId is required")
        if data.get("customerId") in (None, ""):
            errors.append("customerId is required")
        for key in ("fullName", "email", "phone", "location", "gender"):
            if not _text(customer_details.get(key)):
                errors.append(f"customerDetails.{key} is required")
        if not rental_details.get("pickupDate") or not rental_details.get("returnDate"):
            errors.append("rentalDetails.pickupDate and rentalDetails.returnDate are required")
        try:
            period = normalize_period(rental_details.get("period") or "Day")
        except ValueError as e:
            errors.append(str(e))
            period = None
        if errors:
            raise BookingValidationError(errors)

        try:
            pickup = parse_datetime(rental_details["pickupDate"], _offset())
            returned = parse_datetime(rental_details["returnDate"], _offset())
        except ValueError as e:
            raise BookingValidationError([f"invalid date: {e}"])

        item_id = int(data["itemId"])
        item = ItemRepo.get(item_id)
        if item:
            item_snapshot = ItemSnapshot(
                product=item.title,
                category=item.category or "",
                location=item.location or "",
                price_per_day=to_money(item.price_per_day),
                item_image=item.item_image,
            )
            owner_id = item.owner_id
        else:
            if item_details.get("pricePerDay") in (None, ""):
                raise ItemNotFound(item_id)
            item_snapshot = ItemSnapshot(
                product=item_details.get("title") or "Unknown Product",
                category=item_details.get("category") or "",
                location=item_details.get("location") or "",
                price_per_day=to_money(item_details.get("pricePerDay")),
                item_image=item_details.get("itemImage"),
            )
            owner_id = data.get("ownerId")
        if owner_id in (None, ""):
            raise BookingValidationError(["ownerId is required"])

        customer_snapshot = CustomerSnapshot(
            name=_text(customer_details["fullName"]),
            email=_text(customer_details["email"]),
            phone=_text(customer_details["phone"]),
            address=_text(customer_details["location"]),
            gender=_text(customer_details["gender"]),
        )

        delivery = rental_details.get("deliveryCharge", data.get("deliveryCharge"))
        if delivery in (None, ""):
            delivery = current_app.config.get("DEFAULT_DELIVERY_CHARGE", "25.00")

        status = BookingStatus.CART if data.get("status") == BookingStatus.CART.value else BookingStatus.PENDING

        booking = Booking(
            item_id=item_id,
            customer_id=int(data["customerId"]),
            owner_id=int(owner_id),
            rental_period=period,
            pick_up_date=pickup,
            return_date=returned,
            payment_method=data.get("paymentMethod"),
            delivery_charge=to_money(delivery),
            payment_status="unpaid",
            status=status.value,
            **_guarantors(data),
        )
        booking.apply_snapshots(item_snapshot, customer_snapshot)
        BookingService._apply_pricing(booking)
        rental_days, _ = legacy_amount(pickup, returned, booking.price_per_day)

        BookingRepo.create(booking)
        current_app.logger.info(
            f"[booking] created id={booking.id} item={booking.item_id} customer={booking.customer_id} "
            f"status={booking.status} grand_total={booking.grand_total}"
        )

        if status is BookingStatus.PENDING:
            BookingService._notify_submitted(booking)
        return booking, rental_days

    @staticmethod
    def _notify_submitted(booking: Booking) -> None:
        owner = OwnerRepo.get(booking.owner_id)
        MailService.send_booking_submitted(booking, owner.email if owner else None)

    @staticmethod
    def update_booking(booking_id: str, data: dict) -> Booking:
        """Edits rental terms/payment fields. Snapshot columns are never touched here.

        Accepts the flat update keys or a full ``book-item`` body; top-level keys
        win over ``rentalDetails``.
        """
        booking = BookingService.get_booking(booking_id)
        rental_details = data.get("rentalDetails") or {}
        period = data.get("rentalPeriod") or rental_details.get("period")
        pickup = data.get("pickUpDate") or rental_details.get("pickupDate")
        returned = data.get("returnDate") or rental_details.get("returnDate")
        delivery = data.get("deliveryCharge")
        if delivery in (None, ""):
            delivery = rental_details.get("deliveryCharge")

        # parse everything before the row is touched
        try:
            period = normalize_period(period) if period else None
            pickup = parse_datetime(pickup, _offset()) if pickup else None
            returned = parse_datetime(returned, _offset()) if returned else None
            delivery = to_money(delivery) if delivery not in (None, "") else None
        except (TypeError, ValueError) as e:
            raise BookingValidationError([str(e)])

        if data.get("paymentMethod"):
            booking.payment_method = data["paymentMethod"]
        if data.get("paymentIntentId"):
            booking.payment_intent_id = data["paymentIntentId"]
        if period:
            booking.rental_period = period
        if pickup:
            booking.pick_up_date = pickup
        if returned:
            booking.return_date = returned
        if delivery is not None:
            booking.delivery_charge = delivery
        repriced = any(v is not None for v in (period, pickup, returned, delivery))
        for col, value in _guarantors(data).items():
            setattr(booking, col, value)

        if repriced:
            BookingService._apply_pricing(booking)

        submitted = False
        if data.get("status") == BookingStatus.PENDING.value and booking.status == BookingStatus.CART.value:
            booking.status = sm.next_status(booking.status, BookingEvent.SUBMIT).value
            submitted = True

        paid_now = False
        if data.get("paymentStatus") == "paid" and booking.payment_status != "paid":
            booking.payment_status = "paid"
            paid_now = True
            if sm.can_apply(booking.status, BookingEvent.PAYMENT_CONFIRMED):
                booking.status = sm.next_status(booking.status, BookingEvent.PAYMENT_CONFIRMED).value

        BookingRepo.commit()
        current_app.logger.info(f"[booking] updated id={booking.id} status={booking.status} payment={booking.payment_status}")

        if submitted:
            BookingService._notify_submitted(booking)
        if paid_now:
            owner = OwnerRepo.get(booking.owner_id)
            MailService.send_payment_received(booking, owner.email if owner else None)
        return booking

    # -----------------------------
    # Transitions
    # -----------------------------
    @staticmethod
    def transition(booking_id: str, event) -> tuple[Booking, bool]:
        """Applies ``event``; returns (booking, changed). A repeated event is a no-op."""
        event = BookingEvent(event)
        if event is BookingEvent.RETURN:
            raise ValueError("use return_item() for returns")

        booking = BookingService.get_booking(booking_id)
        previous = booking.status
        target = sm.next_status(previous, event)

        if sm.is_noop(previous, event):
            current_app.logger.info(f"[booking] {event.value} on {booking.id}: already {target.value}")
            return booking, False

        booking.status = target.value
        if event in (BookingEvent.APPROVE, BookingEvent.APPROVE_REQUEST):
            BookingService._apply_pricing(booking)
        BookingRepo.commit()
        current_app.logger.info(f"[booking] {booking.id}: {previous} -> {booking.status} ({event.value})")

        # state is committed; mail is best-effort from here on
        BookingService._notify_transition(booking, event)
        return booking, True

    @staticmethod
    def _notify_transition(booking: Booking, event: BookingEvent) -> None:
        if event in (BookingEvent.APPROVE, BookingEvent.APPROVE_REQUEST):
            MailService.send_booking_approved(booking)
        elif event in (BookingEvent.REJECT, BookingEvent.REJECT_REQUEST, BookingEvent.REJECT_BOOKING):
            MailService.send_booking_rejected(booking)
        elif event is BookingEvent.CANCEL:
            MailService.send_booking_cancelled(booking)
        elif event is BookingEvent.START:
            MailService.send_rental_started(booking)
        elif event is BookingEvent.TERMINATE:
            MailService.send_booking_terminated(booking)
        elif event is BookingEvent.SUBMIT:
            BookingService._notify_submitted(booking)

    @staticmethod
    def return_item(booking_id: str) -> tuple[History, int]:
        """Settles an ongoing booking: restock the item, archive to history, delete the booking."""
        booking = BookingService.get_booking(booking_id)
        sm.next_status(booking.status, BookingEvent.RETURN)

        item = ItemRepo.get(booking.item_id)
        if not item:
            raise ItemNotFound(booking.item_id)

        try:
            item.available_quantity = (item.available_quantity or 0) + 1

            history = History(booking_id=booking.id, status=BookingStatus.TERMINATED.value)
            for col in ARCHIVED_COLUMNS:
                setattr(history, col, getattr(booking, col))
            HistoryRepo.add(history)
            BookingRepo.delete(booking, commit=False)

            # one commit: restock, archive and delete land together
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            f"[booking] returned {booking_id}: history={history.id} item={item.id} "
            f"available_quantity={item.available_quantity}"
        )
        return history, item.available_quantity

    @staticmethod
    def delete_booking(booking_id: str) -> None:
        booking = BookingService.get_booking(booking_id)
        BookingRepo.delete(booking)
        current_app.logger.info(f"[booking] deleted {booking_id}")

    # -----------------------------
    # Read tracking / status
    # -----------------------------
    @staticmethod
    def mark_as_read(booking_id: str) -> Booking:
        booking = BookingService.get_booking(booking_id)
        if not booking.is_read:
            booking.is_read = True
            booking.read_at = datetime.utcnow()
            BookingRepo.commit()
        return booking

    @staticmethod
    def rental_status(booking_id: str, now: datetime | None = None) -> dict:
        booking = BookingService.get_booking(booking_id)
        now = now or parse_datetime(datetime.now(timezone.utc), _offset())
        is_late = booking.status == BookingStatus.ONGOING.value and booking.return_date < now
        delta_hours = (now - booking.return_date).total_seconds() / 3600
        return {
            "bookingId": booking.id,
            "status": booking.status,
            "returnDate": booking.return_date.isoformat(),
            "isLate": is_late,
            "hoursOverdue": round(delta_hours, 2) if is_late else 0,
            "hoursRemaining": round(-delta_hours, 2) if delta_hours < 0 else 0,
            "grandTotal": float(booking.grand_total) if booking.grand_total is not None else None,
            "paymentStatus": booking.payment_status,
        }

    @staticmethod
    def quote(data: dict) -> dict:
        pickup = parse_datetime(data.get("pickupDate"), _offset())
        returned = parse_datetime(data.get("returnDate"), _offset())
        base = data.get("pricePerDay")
        if base in (None, "") and data.get("itemId"):
            item = ItemRepo.get(int(data["itemId"]))
            if not item:
                raise ItemNotFound(data["itemId"])
            base = item.price_per_day
            location = data.get("itemLocation") or item.location
        else:
            location = data.get("itemLocation")
        if base in (None, ""):
            raise BookingValidationError(["pricePerDay or itemId is required"])

        barangay, town, province = data.get("barangay"), data.get("town"), data.get("province")
        if not barangay and data.get("customerId"):
            # fall back to the address on the customer profile
            customer = CustomerRepo.get(int(data["customerId"]))
            if customer:
                barangay, town, province = customer.barangay, customer.town, customer.province

        estimate = None
        if barangay and location:
            estimate = calculate_delivery_fee(barangay, location, town=town, province=province)
        fee = estimate.delivery_fee if estimate else Decimal("0.00")

        result = compute_quote(
            data.get("period") or "Day", pickup, returned, base,
            delivery_fee=fee, duration_hint=data.get("durationHint"), utc_offset_hours=_offset(),
        ).to_dict()
        result["distanceKm"] = float(estimate.distance_km) if estimate else 0.0
        return result

