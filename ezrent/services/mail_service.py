# ezrent/services/mail_service.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from flask_mail import Message
from sqlalchemy.exc import SQLAlchemyError

from ezrent.extensions import db, mail
from ezrent.models.notification_log import NotificationLog


def _peso(value) -> str:
    return f"₱{Decimal(str(value or 0)):,.2f}"


def _when(value) -> str:
    return value.strftime("%b %d, %Y %I:%M %p") if value else "-"


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        """
        return: (success, error_text)
        """
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[mail] could not send '{subject}' to {to_email}: {e}")
            return False, str(e)

    @staticmethod
    def log_notification(
        booking_id: str | None,
        notif_type: str,
        to_email: str | None,
        subject: str | None,
        message: str,
        success: bool,
        error: str | None = None,
        commit: bool = True,
    ) -> NotificationLog | None:
        row = NotificationLog(
            booking_id=booking_id,
            type=notif_type,
            email=to_email,
            subject=subject,
            message=(message or "")[:1000],
            success=bool(success),
            error_message=(error or "")[:500] or None,
            sent_at=datetime.utcnow(),
        )
        try:
            db.session.add(row)
            if commit:
                db.session.commit()
            return row
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.warning(f"[mail] notification log not written ({notif_type}): {e}")
            return None

    @staticmethod
    def notify(booking_id, notif_type: str, to_email: str | None, subject: str, body: str, commit: bool = True) -> bool:
        """Send + log. Never raises: a failed email must not undo the booking change."""
        if not to_email:
            MailService.log_notification(
                booking_id, notif_type, None, subject, "Recipient email missing",
                success=False, error="missing_email", commit=commit,
            )
            return False

        ok, err = MailService.send_email(to_email, subject, body)
        MailService.log_notification(
            booking_id, notif_type, to_email, subject, body,
            success=ok, error=err, commit=commit,
        )
        return ok

    # -----------------------------
    # Booking lifecycle notices
    # -----------------------------
    @staticmethod
    def send_booking_submitted(booking, owner_email: str | None = None) -> None:
        MailService.notify(
            booking.id, "booking_submitted", booking.email,
            "EzRent: Booking request received",
            (
                f"Hi {booking.name},\n\n"
                f"Your request to rent '{booking.product}' was sent to the owner.\n"
                f"Pick-up: {_when(booking.pick_up_date)}\n"
                f"Return: {_when(booking.return_date)}\n"
                f"Total: {_peso(booking.grand_total or booking.amount)}\n\n"
                f"We will email you once the owner responds.\n"
            ),
        )
        if owner_email:
            MailService.notify(
                booking.id, "booking_received", owner_email,
                "EzRent: New booking request",
                (
                    f"{booking.name} wants to rent '{booking.product}'.\n"
                    f"Pick-up: {_when(booking.pick_up_date)}\n"
                    f"Return: {_when(booking.return_date)}\n"
                    f"Payment method: {booking.payment_method or '-'}\n\n"
                    f"Open the app to approve or reject the request.\n"
                ),
            )

    @staticmethod
    def send_booking_approved(booking) -> None:
        MailService.notify(
            booking.id, "booking_approved", booking.email,
            "EzRent: Your booking was approved",
            (
                f"Hi {booking.name},\n\n"
                f"The owner approved your request for '{booking.product}'.\n"
                f"Amount due: {_pesos_line(booking)}\n\n"
                f"Next steps:\n"
                f"1. Settle the payment using {booking.payment_method or 'your chosen method'}.\n"
                f"2. Prepare a valid ID for the hand-over.\n"
                f"3. Be ready at {booking.address} on {_when(booking.pick_up_date)}.\n"
            ),
        )

    @staticmethod
    def send_booking_rejected(booking) -> None:
        MailService.notify(
            booking.id, "booking_rejected", booking.email,
            "EzRent: Booking request declined",
            (
                f"Hi {booking.name},\n\n"
                f"Unfortunately the owner declined your request for '{booking.product}'.\n"
                f"You were not charged. Feel free to browse other items.\n"
            ),
        )

    @staticmethod
    def send_booking_cancelled(booking) -> None:
        MailService.notify(
            booking.id, "booking_cancelled", booking.email,
            "EzRent: Booking cancelled",
            (
                f"Hi {booking.name},\n\n"
                f"Your booking for '{booking.product}' has been cancelled.\n"
            ),
        )

    @staticmethod
    def send_rental_started(booking) -> None:
        MailService.notify(
            booking.id, "rental_started", booking.email,
            "EzRent: Your rental has started",
            (
                f"Hi {booking.name},\n\n"
                f"'{booking.product}' has been handed over. Your rental is now ongoing.\n"
                f"Please return it by {_when(booking.return_date)}.\n"
            ),
        )

    @staticmethod
    def send_booking_terminated(booking) -> None:
        MailService.notify(
            booking.id, "booking_terminated", booking.email,
            "EzRent: Rental terminated",
            (
                f"Hi {booking.name},\n\n"
                f"The owner ended your rental of '{booking.product}'.\n"
                f"Contact the owner through the app if you have questions.\n"
            ),
        )

    @staticmethod
    def send_payment_received(booking, owner_email: str | None = None) -> None:
        body = (
            f"Payment for '{booking.product}' was received.\n"
            f"Amount: {_pesos_line(booking)}\n"
            f"Reference: {booking.payment_intent_id or '-'}\n"
        )
        MailService.notify(booking.id, "payment_received", booking.email, "EzRent: Payment received", body)
        if owner_email:
            MailService.notify(booking.id, "payment_received_owner", owner_email, "EzRent: Renter has paid", body)

    # -----------------------------
    # Reminders
    # -----------------------------
    @staticmethod
    def send_return_reminder(booking, message: str) -> bool:
        return MailService.notify(
            booking.id, "return_reminder", booking.email,
            "EzRent: Return reminder",
            f"Hi {booking.name},\n\n{message}\n",
        )

    @staticmethod
    def send_late_rental(booking, commit: bool = False) -> bool:
        return MailService.notify(
            booking.id, "late_rental", booking.email,
            "EzRent: Rental overdue",
            (
                f"Hi {booking.name},\n\n"
                f"'{booking.product}' was due back on {_when(booking.return_date)}.\n"
                f"Please return it as soon as possible.\n"
            ),
            commit=commit,
        )

    @staticmethod
    def send_due_soon(booking, commit: bool = False) -> bool:
        return MailService.notify(
            booking.id, "due_soon", booking.email,
            "EzRent: Return date is near",
            (
                f"Hi {booking.name},\n\n"
                f"'{booking.product}' is due back on {_when(booking.return_date)}.\n"
            ),
            commit=commit,
        )

    @staticmethod
    def send_payment_pending(booking, owner, deadline_hours: int, commission_rate) -> bool:
        total = Decimal(str(booking.grand_total or booking.amount or 0))
        commission = (total * Decimal(str(commission_rate))).quantize(Decimal("0.01"))
        return MailService.notify(
            booking.id, "payment_pending", owner.email,
            f"Payment Pending - Action Required Within {deadline_hours} Hours",
            (
                f"Hi {owner.full_name},\n\n"
                f"{booking.name} booked '{booking.product}' on {_when(booking.created_at)}.\n"
                f"Rental price: {_peso(total)}\n"
                f"Platform commission: {_peso(commission)}\n\n"
                f"Please settle the commission within {deadline_hours} hours "
                f"to keep the booking active. Booking ref: {booking.id}\n"
            ),
        )


def _pesos_line(booking) -> str:
    if booking.grand_total is not None:
        return _peso(booking.grand_total)
    return _peso(booking.amount)
