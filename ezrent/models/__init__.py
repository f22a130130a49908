from .owner import Owner
from .customer import Customer
from .item import Item
from .booking import Booking, ItemSnapshot, CustomerSnapshot
from .history import History
from .notification_log import NotificationLog

__all__ = ["Owner", "Customer", "Item", "Booking", "ItemSnapshot", "CustomerSnapshot", "History", "NotificationLog"]
