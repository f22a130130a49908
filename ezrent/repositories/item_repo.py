from ezrent.models.item import Item
from ezrent.extensions import db


class ItemRepo:
    @staticmethod
    def get(item_id: int):
        return db.session.get(Item, item_id)
