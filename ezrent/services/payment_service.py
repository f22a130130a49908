"""PayMongo calls used by the payment endpoints.

Redirect flow: checkout session -> checkout_url.
QR flow: payment intent -> qrph payment method -> attach -> QR image,
then the client polls the intent status until it reports ``succeeded``.
"""
from __future__ import annotations

from decimal import Decimal

import httpx
from flask import current_app

from ezrent.exceptions import PaymentProviderError
from ezrent.services.pricing_service import to_money

FALLBACK_MESSAGE = "Payment initialization failed"


def to_centavos(amount) -> int:
    return int((to_money(amount) * 100).to_integral_value())


def provider_error_message(response: httpx.Response | None = None, exc: Exception | None = None,
                           fallback: str = FALLBACK_MESSAGE) -> str:
    """Most specific message first: errors[].detail, then message, then HTTP text, then fallback."""
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            errors = body.get("errors") or []
            if errors and isinstance(errors[0], dict) and errors[0].get("detail"):
                return str(errors[0]["detail"])
            if body.get("message"):
                return str(body["message"])
        if response.reason_phrase:
            return f"HTTP {response.status_code} {response.reason_phrase}"
    if exc is not None and str(exc):
        return str(exc)
    return fallback


class PayMongoClient:
    def __init__(self, secret_key: str, api_url: str = "https://api.paymongo.com/v1",
                 timeout: float = 30.0, client: httpx.Client | None = None):
        if not secret_key:
            raise PaymentProviderError("Payment provider is not configured")
        self._owns_client = client is None
        self.client = client or httpx.Client(
            base_url=api_url.rstrip("/"),
            auth=(secret_key, ""),
            timeout=timeout,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    @classmethod
    def from_config(cls, config) -> "PayMongoClient":
        return cls(
            secret_key=config.get("PAYMONGO_SECRET_KEY", ""),
            api_url=config.get("PAYMONGO_API_URL", "https://api.paymongo.com/v1"),
            timeout=float(config.get("PAYMENT_TIMEOUT_SECONDS", 30.0)),
        )

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        try:
            resp = self.client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise PaymentProviderError(provider_error_message(exc=e)) from e

        if resp.is_error:
            raise PaymentProviderError(provider_error_message(resp), status_code=resp.status_code,
                                       payload=_safe_json(resp))
        data = _safe_json(resp)
        if not isinstance(data, dict) or "data" not in data:
            raise PaymentProviderError("Unexpected response from payment provider", status_code=resp.status_code)
        return data["data"]

    def create_checkout_session(self, amount, name: str, success_url: str, cancel_url: str,
                                method_types=("gcash",)) -> dict:
        return self._request("POST", "/checkout_sessions", {
            "data": {
                "attributes": {
                    "line_items": [{
                        "name": name,
                        "amount": to_centavos(amount),
                        "currency": "PHP",
                        "quantity": 1,
                    }],
                    "payment_method_types": list(method_types),
                    "success_url": success_url,
                    "cancel_url": cancel_url,
                }
            }
        })

    def create_payment_intent(self, amount, description: str) -> dict:
        return self._request("POST", "/payment_intents", {
            "data": {
                "attributes": {
                    "amount": to_centavos(amount),
                    "currency": "PHP",
                    "payment_method_allowed": ["qrph"],
                    "capture_type": "automatic",
                    "description": description,
                }
            }
        })

    def create_qrph_method(self) -> dict:
        return self._request("POST", "/payment_methods", {"data": {"attributes": {"type": "qrph"}}})

    def attach(self, intent_id: str, method_id: str, client_key: str | None) -> dict:
        attributes = {"payment_method": method_id}
        if client_key:
            attributes["client_key"] = client_key
        return self._request("POST", f"/payment_intents/{intent_id}/attach", {"data": {"attributes": attributes}})

    def retrieve_intent(self, intent_id: str) -> dict:
        return self._request("GET", f"/payment_intents/{intent_id}")


def _safe_json(resp: httpx.Response):
    try:
        return resp.json()
    except ValueError:
        return None


class PaymentService:
    @staticmethod
    def _client(client: PayMongoClient | None = None) -> PayMongoClient:
        return client or PayMongoClient.from_config(current_app.config)

    @staticmethod
    def create_checkout(amount, name: str, client: PayMongoClient | None = None) -> str:
        amount = to_money(amount)
        if amount <= Decimal("0"):
            raise PaymentProviderError("Amount must be greater than zero")

        cfg = current_app.config
        pm = PaymentService._client(client)
        with pm:
            session = pm.create_checkout_session(
                amount, name or "Rental Item",
                success_url=cfg.get("PAYMENT_SUCCESS_URL"),
                cancel_url=cfg.get("PAYMENT_CANCEL_URL"),
            )
        checkout_url = (session.get("attributes") or {}).get("checkout_url")
        if not checkout_url:
            raise PaymentProviderError("Payment provider did not return a checkout URL")
        current_app.logger.info(f"[payment] checkout session {session.get('id')} amount={amount}")
        return checkout_url

    @staticmethod
    def create_qr_payment(amount, description: str, client: PayMongoClient | None = None) -> dict:
        amount = to_money(amount)
        if amount <= Decimal("0"):
            raise PaymentProviderError("Amount must be greater than zero")

        pm = PaymentService._client(client)
        with pm:
            intent = pm.create_payment_intent(amount, description or "EzRent rental")
            intent_id = intent.get("id")
            client_key = (intent.get("attributes") or {}).get("client_key")

            method = pm.create_qrph_method()
            attached = pm.attach(intent_id, method.get("id"), client_key)

        next_action = (attached.get("attributes") or {}).get("next_action") or {}
        image_url = (next_action.get("code") or {}).get("image_url")
        if not image_url:
            raise PaymentProviderError("Payment provider did not return a QR code")

        current_app.logger.info(f"[payment] qrph intent {intent_id} amount={amount}")
        return {
            "paymentIntentId": intent_id,
            "qrCode": {"imageUrl": image_url, "amount": float(amount)},
        }

    @staticmethod
    def get_status(intent_id: str, client: PayMongoClient | None = None) -> str:
        pm = PaymentService._client(client)
        with pm:
            intent = pm.retrieve_intent(intent_id)
        return (intent.get("attributes") or {}).get("status") or "unknown"
