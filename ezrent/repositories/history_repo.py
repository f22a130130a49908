from ezrent.models.history import History
from ezrent.extensions import db


class HistoryRepo:
    @staticmethod
    def get(history_id: int):
        return db.session.get(History, history_id)

    @staticmethod
    def list_by_owner(owner_id: int):
        return History.query.filter_by(owner_id=owner_id).order_by(History.id.desc()).all()

    @staticmethod
    def list_by_customer(customer_id: int):
        return History.query.filter_by(customer_id=customer_id).order_by(History.id.desc()).all()

    @staticmethod
    def add(history: History):
        # caller commits together with the booking delete
        db.session.add(history)
        return history
