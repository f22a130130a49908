from decimal import Decimal

import pytest

from ezrent import create_app
from ezrent.config import TestConfig
from ezrent.extensions import db
from ezrent.models import Customer, Item, Owner


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def owner(app):
    row = Owner(first_name="Maria", middle_name="L", last_name="Santos", email="owner@example.com")
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture
def customer(app):
    row = Customer(
        first_name="Juan", last_name="Cruz", email="juan@example.com", phone="09171234567",
        gender="Male", street="12 Mabini St", barangay="San Roque", town="Angono", province="Rizal",
    )
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture
def item(owner):
    row = Item(
        owner_id=owner.id, title="Canon EOS 90D", category="Cameras", location="Taytay, Rizal",
        price_per_day=Decimal("500.00"), quantity=2, available_quantity=1,
    )
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture
def booking_payload(item, customer):
    def build(**rental):
        rental_details = {
            "period": "Day",
            "pickupDate": "2025-03-10T09:00:00",
            "returnDate": "2025-03-12T09:00:00",
        }
        rental_details.update(rental)
        return {
            "itemId": item.id,
            "customerId": customer.id,
            "paymentMethod": "Cash on Delivery",
            "customerDetails": {
                "fullName": "Juan Cruz",
                "email": "juan@example.com",
                "phone": "09171234567",
                "location": "San Roque, Angono, Rizal",
                "gender": "Male",
            },
            "rentalDetails": rental_details,
            "guarantor1FullName": "Ana Cruz",
            "guarantor1PhoneNumber": "09181234567",
            "guarantor1Address": "Angono, Rizal",
            "guarantor1Email": "ana@example.com",
            "guarantor2FullName": "Leo Cruz",
            "guarantor2PhoneNumber": "09191234567",
            "guarantor2Address": "Binangonan, Rizal",
            "guarantor2Email": "leo@example.com",
        }
    return build


@pytest.fixture
def make_booking(app, booking_payload):
    """Creates a booking through the service and forces the status when given."""
    from ezrent.services.booking_service import BookingService

    def build(status=None, **rental):
        booking, _ = BookingService.create_booking(booking_payload(**rental))
        if status:
            booking.status = status
            db.session.commit()
        return booking
    return build
