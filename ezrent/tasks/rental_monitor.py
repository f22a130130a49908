# ezrent/tasks/rental_monitor.py
from datetime import datetime, timedelta, timezone
from flask import current_app

from ezrent.extensions import db
from ezrent.repositories.booking_repo import BookingRepo
from ezrent.repositories.notification_repo import NotificationRepo
from ezrent.services.mail_service import MailService
from ezrent.utils.dates import parse_datetime


def rental_now() -> datetime:
    # return_date is stored on the rental calendar
    return parse_datetime(datetime.now(timezone.utc), current_app.config.get("RENTAL_UTC_OFFSET_HOURS", 8))


def scan_rentals(now: datetime | None = None) -> dict:
    """
    Ongoing rentals past their return date (late) or within DUE_SOON_HOURS (due soon).
    Each customer gets at most one mail per booking per kind. Booking status is not touched.
    """
    now = now or rental_now()
    due_soon_limit = now + timedelta(hours=int(current_app.config.get("DUE_SOON_HOURS", 24)))

    late_rows = BookingRepo.find_late(now)
    due_soon_rows = BookingRepo.find_due_soon(now, due_soon_limit)

    late_sent = 0
    due_soon_sent = 0

    for b in late_rows:
        if NotificationRepo.already_sent(b.id, "late_rental"):
            continue
        if MailService.send_late_rental(b, commit=False):
            late_sent += 1

    for b in due_soon_rows:
        if NotificationRepo.already_sent(b.id, "due_soon"):
            continue
        if MailService.send_due_soon(b, commit=False):
            due_soon_sent += 1

    # single commit for the notification log rows
    db.session.commit()

    summary = {
        "late": len(late_rows),
        "dueSoon": len(due_soon_rows),
        "lateMailSent": late_sent,
        "dueSoonMailSent": due_soon_sent,
    }
    current_app.logger.info(
        f"[rental_monitor] late={summary['late']} due_soon={summary['dueSoon']} "
        f"late_mail_sent={late_sent} due_soon_mail_sent={due_soon_sent}"
    )
    return summary


def run_rental_monitor_job(app):
    with app.app_context():
        try:
            scan_rentals()
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"[rental_monitor] error: {e}")
