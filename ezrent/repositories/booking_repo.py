from datetime import datetime
from ezrent.models.booking import Booking
from ezrent.extensions import db


class BookingRepo:
    @staticmethod
    def get(booking_id: str):
        return db.session.get(Booking, booking_id)

    @staticmethod
    def list_all():
        return Booking.query.order_by(Booking.created_at.desc()).all()

    @staticmethod
    def list_by_statuses(statuses):
        return Booking.query.filter(Booking.status.in_(list(statuses))).order_by(Booking.created_at.desc()).all()

    @staticmethod
    def list_by_customer(customer_id: int, statuses=None):
        q = Booking.query.filter_by(customer_id=customer_id)
        if statuses:
            q = q.filter(Booking.status.in_(list(statuses)))
        return q.order_by(Booking.created_at.desc()).all()

    @staticmethod
    def list_by_owner(owner_id: int, statuses=None):
        q = Booking.query.filter_by(owner_id=owner_id)
        if statuses:
            q = q.filter(Booking.status.in_(list(statuses)))
        return q.order_by(Booking.created_at.desc()).all()

    @staticmethod
    def count_unread(customer_id: int) -> int:
        return Booking.query.filter_by(customer_id=customer_id, is_read=False).count()

    @staticmethod
    def create(booking: Booking):
        db.session.add(booking)
        db.session.commit()
        return booking

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def delete(booking: Booking, commit: bool = True):
        db.session.delete(booking)
        if commit:
            db.session.commit()

    @staticmethod
    def find_late(now: datetime):
        return Booking.query.filter(
            Booking.status == "ongoing",
            Booking.return_date < now
        ).order_by(Booking.return_date.asc()).all()

    @staticmethod
    def find_due_soon(now: datetime, until: datetime):
        return Booking.query.filter(
            Booking.status == "ongoing",
            Booking.return_date >= now,
            Booking.return_date <= until
        ).order_by(Booking.return_date.asc()).all()
