from ezrent.models.notification_log import NotificationLog
from ezrent.extensions import db


class NotificationRepo:
    @staticmethod
    def already_sent(booking_id: str, notif_type: str) -> bool:
        return NotificationLog.query.filter_by(
            booking_id=booking_id, type=notif_type, success=True
        ).first() is not None

    @staticmethod
    def list_for_booking(booking_id: str):
        return NotificationLog.query.filter_by(booking_id=booking_id).order_by(NotificationLog.id.desc()).all()

    @staticmethod
    def delete_older_than(booking_ids, before) -> int:
        if not booking_ids:
            return 0
        count = NotificationLog.query.filter(
            NotificationLog.booking_id.in_(list(booking_ids)),
            NotificationLog.sent_at < before,
        ).delete(synchronize_session=False)
        db.session.commit()
        return count
