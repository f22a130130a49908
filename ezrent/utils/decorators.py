from functools import wraps

from flask import current_app, jsonify

from ezrent.exceptions import (
    BookingNotFound, BookingValidationError, HistoryNotFound, IllegalTransition,
    ItemNotFound, OwnerNotFound, PaymentProviderError,
)
from ezrent.extensions import db

NOT_FOUND = (BookingNotFound, ItemNotFound, HistoryNotFound, OwnerNotFound)


def json_error(message, code=400, **extra):
    return jsonify({"success": False, "message": message, **extra}), code


def service_errors(fn):
    """Maps service exceptions to JSON error responses."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except NOT_FOUND as e:
            return json_error(str(e), 404)
        except IllegalTransition as e:
            return json_error(str(e), 409)
        except BookingValidationError as e:
            return json_error(str(e), 400, errors=e.errors)
        except PaymentProviderError as e:
            current_app.logger.warning(f"[payment] provider error: {e.message}")
            return json_error(e.message, 502)
        except ValueError as e:
            return json_error(str(e), 400)
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"[api] {fn.__name__} failed: {e}")
            return json_error(str(e), 500)
    return wrapper
