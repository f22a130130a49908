"""Booking status vocabulary and legal transitions.

Side effects (emails, amount recompute, history archive) live in
BookingService; this module only answers "where does this event take a
booking in this status".
"""
from __future__ import annotations

from enum import Enum

from ezrent.exceptions import IllegalTransition


class BookingStatus(str, Enum):
    CART = "cart"
    PENDING = "pending"
    BOOKED = "booked"
    APPROVED = "approved"
    ONGOING = "ongoing"
    TERMINATED = "terminated"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    # legacy labels still written by the request-approval endpoints
    APPROVED_TO_RENT = "Approved to Rent"
    REJECTED_TO_RENT = "Rejected to Rent"

    @classmethod
    def parse(cls, value) -> "BookingStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            # stored lowercase by some clients
            for member in cls:
                if member.value.lower() == str(value).strip().lower():
                    return member
            raise


class BookingEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    APPROVE_REQUEST = "approve_request"
    REJECT_REQUEST = "reject_request"
    REQUEST = "request"
    REJECT_BOOKING = "reject_booking"
    PAYMENT_CONFIRMED = "payment_confirmed"
    START = "start"
    CANCEL = "cancel"
    TERMINATE = "terminate"
    RETURN = "return"


TERMINAL_STATUSES = frozenset({
    BookingStatus.TERMINATED,
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
    BookingStatus.REJECTED_TO_RENT,
})

NON_TERMINAL_STATUSES = frozenset(s for s in BookingStatus if s not in TERMINAL_STATUSES)

S = BookingStatus

# event -> (allowed predecessors, target). RETURN has no stored target: the row is archived.
TRANSITIONS = {
    BookingEvent.SUBMIT: ({S.CART}, S.PENDING),
    BookingEvent.APPROVE: ({S.PENDING}, S.APPROVED),
    BookingEvent.REJECT: ({S.PENDING}, S.REJECTED),
    BookingEvent.APPROVE_REQUEST: ({S.PENDING}, S.APPROVED_TO_RENT),
    BookingEvent.REJECT_REQUEST: ({S.PENDING}, S.REJECTED_TO_RENT),
    BookingEvent.REQUEST: ({S.APPROVED, S.APPROVED_TO_RENT}, S.BOOKED),
    BookingEvent.REJECT_BOOKING: ({S.BOOKED, S.APPROVED, S.APPROVED_TO_RENT}, S.REJECTED_TO_RENT),
    BookingEvent.PAYMENT_CONFIRMED: ({S.CART, S.PENDING, S.APPROVED, S.APPROVED_TO_RENT}, S.BOOKED),
    BookingEvent.START: ({S.APPROVED, S.BOOKED, S.APPROVED_TO_RENT}, S.ONGOING),
    BookingEvent.CANCEL: ({S.PENDING, S.APPROVED, S.ONGOING}, S.CANCELLED),
    BookingEvent.TERMINATE: (set(NON_TERMINAL_STATUSES), S.TERMINATED),
    BookingEvent.RETURN: ({S.ONGOING}, S.TERMINATED),
}


def is_terminal(status) -> bool:
    return BookingStatus.parse(status) in TERMINAL_STATUSES


def can_apply(current, event) -> bool:
    try:
        next_status(current, event)
        return True
    except IllegalTransition:
        return False


def is_noop(current, event) -> bool:
    """True when the event's target is already the current status."""
    event = BookingEvent(event)
    _, target = TRANSITIONS[event]
    return event is not BookingEvent.RETURN and BookingStatus.parse(current) is target


def next_status(current, event) -> BookingStatus:
    """Target status for ``event`` from ``current``.

    Re-applying an event whose target is the current status returns that
    status unchanged, so repeated requests are harmless.
    """
    event = BookingEvent(event)
    try:
        current = BookingStatus.parse(current)
    except ValueError:
        raise IllegalTransition(current, event)

    allowed, target = TRANSITIONS[event]
    if current is target and event is not BookingEvent.RETURN:
        return target
    if current not in allowed:
        raise IllegalTransition(current, event)
    return target
