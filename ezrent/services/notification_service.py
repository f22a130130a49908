from datetime import datetime, timedelta

from flask import current_app

from ezrent.exceptions import BookingValidationError, OwnerNotFound
from ezrent.repositories.history_repo import HistoryRepo
from ezrent.repositories.notification_repo import NotificationRepo
from ezrent.repositories.user_repo import OwnerRepo
from ezrent.services.booking_service import BookingService
from ezrent.services.mail_service import MailService


class NotificationService:
    @staticmethod
    def notify_owner_payment_pending(booking_id: str) -> dict:
        booking = BookingService.get_booking(booking_id)
        owner = OwnerRepo.get(booking.owner_id)
        if not owner:
            raise OwnerNotFound(booking.owner_id)

        cfg = current_app.config
        ok = MailService.send_payment_pending(
            booking,
            owner,
            deadline_hours=int(cfg.get("PAYMENT_DEADLINE_HOURS", 24)),
            commission_rate=cfg.get("OWNER_COMMISSION_RATE", "0.30"),
        )
        return {"sent": ok, "ownerName": owner.full_name, "ownerEmail": owner.email}

    @staticmethod
    def notify_customer_return(booking_id: str, message: str) -> dict:
        message = str(message or "").strip()
        if not message:
            raise BookingValidationError(["message is required"])
        booking = BookingService.get_booking(booking_id)
        ok = MailService.send_return_reminder(booking, message)
        return {
            "sent": ok,
            "customerId": booking.customer_id,
            "customerEmail": booking.email,
            "customerPhone": booking.phone,
        }

    @staticmethod
    def cleanup_customer_logs(customer_id: int, now: datetime | None = None) -> int:
        """Purges old notification-log rows of a customer's settled rentals.

        Live bookings keep their rows; the rental monitor reads them to avoid resending.
        """
        days = int(current_app.config.get("NOTIFICATION_RETENTION_DAYS", 30))
        cutoff = (now or datetime.utcnow()) - timedelta(days=days)
        booking_ids = {h.booking_id for h in HistoryRepo.list_by_customer(customer_id) if h.booking_id}
        removed = NotificationRepo.delete_older_than(booking_ids, cutoff)
        current_app.logger.info(f"[notify] cleanup customer={customer_id}: removed {removed} log row(s)")
        return removed
