import httpx

FALLBACK_MESSAGE = "Something went wrong. Please try again."


class ApiError(Exception):
    """Non-2xx response from the EzRent API."""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def _payload_of(exc):
    if isinstance(exc, ApiError):
        return exc.payload
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return exc.response.json()
        except ValueError:
            return None
    return None


def describe_error(exc: Exception, fallback: str = FALLBACK_MESSAGE) -> str:
    """Most specific message available, checked in order:
    provider error detail, provider/API message, HTTP message, fallback.
    """
    payload = _payload_of(exc)
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if not errors and isinstance(payload.get("error"), dict):
            errors = payload["error"].get("errors") or [payload["error"]]
        if errors and isinstance(errors[0], dict) and errors[0].get("detail"):
            return str(errors[0]["detail"])
        for key in ("message", "error"):
            if isinstance(payload.get(key), str) and payload[key]:
                return payload[key]

    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code} {exc.response.reason_phrase}".strip()
    if isinstance(exc, ApiError) and exc.status_code:
        return str(exc) or f"HTTP {exc.status_code}"
    if isinstance(exc, httpx.HTTPError) and str(exc):
        return str(exc)
    return fallback
