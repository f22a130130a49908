from ezrent.extensions import db
from ezrent.models.booking import RentalRecordMixin


class History(RentalRecordMixin, db.Model):
    __tablename__ = "histories"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.String(36), nullable=True, index=True)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["bookingId"] = self.booking_id
        return data
