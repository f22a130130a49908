from ezrent.models.customer import Customer
from ezrent.models.owner import Owner
from ezrent.extensions import db


class CustomerRepo:
    @staticmethod
    def get(customer_id: int):
        return db.session.get(Customer, customer_id)


class OwnerRepo:
    @staticmethod
    def get(owner_id: int):
        return db.session.get(Owner, owner_id)
