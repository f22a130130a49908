import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from ezrent.extensions import db


@dataclass(frozen=True)
class ItemSnapshot:
    """Item fields copied onto a booking when it is submitted."""
    product: str
    category: str
    location: str
    price_per_day: Decimal
    item_image: str | None = None


@dataclass(frozen=True)
class CustomerSnapshot:
    """Customer profile fields copied onto a booking when it is submitted."""
    name: str
    email: str
    phone: str
    address: str
    gender: str


SNAPSHOT_COLUMNS = (
    "product", "category", "location", "price_per_day", "item_image",
    "name", "email", "phone", "address", "gender",
)

GUARANTOR_COLUMNS = (
    "guarantor1_full_name", "guarantor1_phone_number", "guarantor1_address", "guarantor1_email",
    "guarantor2_full_name", "guarantor2_phone_number", "guarantor2_address", "guarantor2_email",
)


def _money(v):
    return float(v) if v is not None else None


def _dt(v):
    return v.isoformat() if v is not None else None


class RentalRecordMixin:
    """Columns shared by a live booking and its settled history row."""

    item_id = db.Column(db.Integer, nullable=False, index=True)
    customer_id = db.Column(db.Integer, nullable=False, index=True)
    owner_id = db.Column(db.Integer, nullable=False, index=True)

    # item snapshot
    product = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    price_per_day = db.Column(db.Numeric(10, 2), nullable=False)
    item_image = db.Column(db.String(500), nullable=True)

    # customer snapshot
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    gender = db.Column(db.String(20), nullable=False)

    rental_period = db.Column(db.String(10), nullable=False)  # Hour / Day / Week
    pick_up_date = db.Column(db.DateTime, nullable=False)
    return_date = db.Column(db.DateTime, nullable=False)
    payment_method = db.Column(db.String(40), nullable=True)

    amount = db.Column(db.Numeric(10, 2), nullable=True)
    rental_duration = db.Column(db.Integer, nullable=True)
    rate_per_period = db.Column(db.Numeric(10, 2), nullable=True)
    delivery_charge = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("25.00"))
    grand_total = db.Column(db.Numeric(10, 2), nullable=True)

    payment_intent_id = db.Column(db.String(100), nullable=True, index=True)
    payment_status = db.Column(db.String(20), nullable=False, default="unpaid")

    guarantor1_full_name = db.Column(db.String(200), nullable=True)
    guarantor1_phone_number = db.Column(db.String(20), nullable=True)
    guarantor1_address = db.Column(db.String(255), nullable=True)
    guarantor1_email = db.Column(db.String(255), nullable=True)
    guarantor2_full_name = db.Column(db.String(200), nullable=True)
    guarantor2_phone_number = db.Column(db.String(20), nullable=True)
    guarantor2_address = db.Column(db.String(255), nullable=True)
    guarantor2_email = db.Column(db.String(255), nullable=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="pending", index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def item_snapshot(self) -> ItemSnapshot:
        return ItemSnapshot(
            product=self.product,
            category=self.category,
            location=self.location,
            price_per_day=self.price_per_day,
            item_image=self.item_image,
        )

    @property
    def customer_snapshot(self) -> CustomerSnapshot:
        return CustomerSnapshot(
            name=self.name,
            email=self.email,
            phone=self.phone,
            address=self.address,
            gender=self.gender,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "itemId": self.item_id,
            "customerId": self.customer_id,
            "ownerId": self.owner_id,
            "product": self.product,
            "category": self.category,
            "location": self.location,
            "pricePerDay": _money(self.price_per_day),
            "itemImage": self.item_image,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "gender": self.gender,
            "rentalPeriod": self.rental_period,
            "pickUpDate": _dt(self.pick_up_date),
            "returnDate": _dt(self.return_date),
            "paymentMethod": self.payment_method,
            "amount": _money(self.amount),
            "rentalDuration": self.rental_duration,
            "ratePerPeriod": _money(self.rate_per_period),
            "deliveryCharge": _money(self.delivery_charge),
            "grandTotal": _money(self.grand_total),
            "paymentIntentId": self.payment_intent_id,
            "paymentStatus": self.payment_status,
            "guarantor1FullName": self.guarantor1_full_name,
            "guarantor1PhoneNumber": self.guarantor1_phone_number,
            "guarantor1Address": self.guarantor1_address,
            "guarantor1Email": self.guarantor1_email,
            "guarantor2FullName": self.guarantor2_full_name,
            "guarantor2PhoneNumber": self.guarantor2_phone_number,
            "guarantor2Address": self.guarantor2_address,
            "guarantor2Email": self.guarantor2_email,
            "isRead": bool(self.is_read),
            "readAt": _dt(self.read_at),
            "status": self.status,
            "createdAt": _dt(self.created_at),
            "updatedAt": _dt(self.updated_at),
        }


class Booking(RentalRecordMixin, db.Model):
    __tablename__ = "books"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    def apply_snapshots(self, item: ItemSnapshot, customer: CustomerSnapshot):
        self.product = item.product
        self.category = item.category
        self.location = item.location
        self.price_per_day = item.price_per_day
        self.item_image = item.item_image
        self.name = customer.name
        self.email = customer.email
        self.phone = customer.phone
        self.address = customer.address
        self.gender = customer.gender
