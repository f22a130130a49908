"""Async HTTP client for the EzRent REST API."""
from __future__ import annotations

from dataclasses import dataclass

import httpx

from ezrent.client.errors import ApiError


@dataclass(frozen=True)
class QrPayment:
    payment_intent_id: str
    image_url: str
    amount: float


class EzRentApi:
    def __init__(self, base_url: str, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def aclose(self):
        await self.client.aclose()

    async def _call(self, method: str, path: str, json: dict | None = None) -> dict:
        resp = await self.client.request(method, path, json=json)
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise ApiError(message or f"HTTP {resp.status_code}", status_code=resp.status_code, payload=body)
        return body or {}

    # bookings
    async def create_booking(self, payload: dict) -> dict:
        return await self._call("POST", "/api/book/book-item", payload)

    async def update_booking(self, booking_id: str, payload: dict) -> dict:
        return await self._call("PUT", f"/api/book/book-item/update/{booking_id}", payload)

    async def quote(self, payload: dict) -> dict:
        return (await self._call("POST", "/api/book/quote", payload))["data"]

    # payments
    async def create_checkout(self, payload: dict) -> str:
        body = await self._call("POST", "/api/payment/gcash", payload)
        if not body.get("checkout_url"):
            raise ApiError("No checkout URL returned", payload=body)
        return body["checkout_url"]

    async def create_qr_payment(self, amount, description: str, booking_id: str | None = None) -> QrPayment:
        payload = {"amount": float(amount), "description": description}
        if booking_id:
            payload["bookingId"] = booking_id
        body = await self._call("POST", "/api/payment/qrph", payload)
        if not body.get("success") or not body.get("paymentIntentId"):
            raise ApiError(body.get("message") or "Failed to create QR payment", payload=body)
        qr = body.get("qrCode") or {}
        return QrPayment(body["paymentIntentId"], qr.get("imageUrl"), qr.get("amount", float(amount)))

    async def payment_status(self, intent_id: str) -> str:
        body = await self._call("GET", f"/api/payment/status/{intent_id}")
        return body.get("status") or "unknown"
