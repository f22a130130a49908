class BookingNotFound(ValueError):
    def __init__(self, booking_id):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class ItemNotFound(ValueError):
    def __init__(self, item_id):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class HistoryNotFound(ValueError):
    def __init__(self, history_id):
        super().__init__(f"History not found: {history_id}")
        self.history_id = history_id


class IllegalTransition(ValueError):
    """Raised when an event is not allowed from the booking's current status."""

    def __init__(self, current, event):
        current_label = getattr(current, "value", current)
        event_label = getattr(event, "value", event)
        super().__init__(f"Cannot apply '{event_label}' to a booking in status '{current_label}'")
        self.current = current
        self.event = event


class BookingValidationError(ValueError):
    def __init__(self, errors):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class PaymentProviderError(RuntimeError):
    """Provider call failed; ``message`` is the most specific text available."""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class OwnerNotFound(ValueError):
    def __init__(self, owner_id):
        super().__init__(f"Owner not found: {owner_id}")
        self.owner_id = owner_id
