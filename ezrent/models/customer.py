from datetime import datetime
from ezrent.extensions import db


class Customer(db.Model):
    __tablename__ = "customers"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=True)
    gender = db.Column(db.String(20), nullable=True)

    # address parts; barangay/town/province feed the delivery fee lookup
    street = db.Column(db.String(255), nullable=True)
    barangay = db.Column(db.String(120), nullable=True)
    town = db.Column(db.String(120), nullable=True)
    province = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.first_name, self.last_name] if p)

    @property
    def address(self) -> str:
        return ", ".join(p for p in [self.street, self.barangay, self.town, self.province] if p)
