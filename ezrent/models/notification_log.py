# ezrent/models/notification_log.py
from datetime import datetime
from ezrent.extensions import db


class NotificationLog(db.Model):
    __tablename__ = "notification_logs"

    id = db.Column(db.Integer, primary_key=True)

    # no FK: bookings are deleted when archived to history
    booking_id = db.Column(db.String(36), nullable=True, index=True)

    # booking_submitted, booking_approved, late_rental, payment_pending, ...
    type = db.Column(db.String(50), nullable=False)

    email = db.Column(db.String(255), nullable=True)
    subject = db.Column(db.String(255), nullable=True)
    message = db.Column(db.String(1000), nullable=True)

    sent_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    success = db.Column(db.Boolean, nullable=False, default=True)
    error_message = db.Column(db.String(500), nullable=True)
