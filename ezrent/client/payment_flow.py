"""Client side of the three payment branches.

Cash on delivery and redirect checkout are single requests. The QR branch
creates a payment intent, polls its status every few seconds while the QR is
on screen, and on ``succeeded`` records the payment on the booking.
"Provider confirmed" and "booking persisted" are tracked separately so the UI
can decide which one gates the success screen.
"""
from __future__ import annotations

import asyncio
import logging
import webbrowser
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

import httpx

from ezrent.client.api import EzRentApi, QrPayment
from ezrent.client.errors import ApiError, describe_error

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5.0
SUCCEEDED = "succeeded"


class PaymentUi(ABC):
    """Screen hooks the payment flow drives."""

    @abstractmethod
    def set_submitting(self, submitting: bool) -> None:
        pass

    @abstractmethod
    def alert(self, title: str, message: str) -> None:
        pass

    @abstractmethod
    def show_request_sent(self) -> None:
        pass

    @abstractmethod
    def show_qr(self, payment: QrPayment) -> None:
        pass

    @abstractmethod
    def close_qr(self) -> None:
        pass

    @abstractmethod
    def show_success(self, state: "ReconciliationState") -> None:
        """Called once the provider confirms, or after persisting when gated."""


@dataclass
class ReconciliationState:
    booking_id: str
    payment_intent_id: str
    provider_confirmed: bool = False
    persisted: bool = False
    persist_error: str | None = None
    polls: int = 0

    @property
    def needs_manual_reconciliation(self) -> bool:
        return self.provider_confirmed and not self.persisted and self.persist_error is not None


class PollRegistry:
    """One polling task per payment intent; closing the QR cancels only that task."""

    def __init__(self):
        self._tasks: dict[str, asyncio.Task] = {}

    def start(self, intent_id: str, coro) -> asyncio.Task:
        self.cancel(intent_id)
        task = asyncio.get_running_loop().create_task(coro, name=f"poll-{intent_id}")
        self._tasks[intent_id] = task
        task.add_done_callback(lambda t, key=intent_id: self._forget(key, t))
        return task

    def _forget(self, intent_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(intent_id) is task:
            del self._tasks[intent_id]

    def get(self, intent_id: str) -> asyncio.Task | None:
        return self._tasks.get(intent_id)

    def is_active(self, intent_id: str) -> bool:
        task = self._tasks.get(intent_id)
        return task is not None and not task.done()

    def cancel(self, intent_id: str) -> bool:
        task = self._tasks.pop(intent_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def release(self, intent_id: str) -> None:
        """Stop tracking a task without cancelling it."""
        self._tasks.pop(intent_id, None)

    def cancel_all(self) -> None:
        for intent_id in list(self._tasks):
            self.cancel(intent_id)


class QrPaymentSession:
    def __init__(self, api: EzRentApi, ui: PaymentUi, booking_id: str, payment: QrPayment,
                 registry: PollRegistry, interval: float = POLL_INTERVAL_SECONDS,
                 gate_success_on_persist: bool = False):
        self.api = api
        self.ui = ui
        self.payment = payment
        self.registry = registry
        self.interval = interval
        self.gate_success_on_persist = gate_success_on_persist
        self.state = ReconciliationState(booking_id=booking_id, payment_intent_id=payment.payment_intent_id)
        self._finalizing = False

    @property
    def intent_id(self) -> str:
        return self.payment.payment_intent_id

    def open(self) -> asyncio.Task:
        self.ui.show_qr(self.payment)
        return self.registry.start(self.intent_id, self._poll_loop())

    def close(self) -> None:
        """Closing the QR stops polling; the provider-side payment is left alone."""
        self.registry.cancel(self.intent_id)
        self.ui.close_qr()

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if await self.poll_once():
                return

    async def poll_once(self, manual: bool = False) -> bool:
        """Returns True once the provider reports success."""
        self.state.polls += 1
        try:
            status = await self.api.payment_status(self.intent_id)
        except (httpx.HTTPError, ApiError) as e:
            logger.warning("status poll for %s failed: %s", self.intent_id, describe_error(e))
            if manual:
                self.ui.alert("Payment status", describe_error(e))
            return False

        if status == SUCCEEDED:
            await self._on_succeeded()
            return True

        if manual:
            self.ui.alert("Payment not yet received", f"Current payment status: {status}")
        return False

    async def check_now(self) -> bool:
        return await self.poll_once(manual=True)

    async def _on_succeeded(self) -> None:
        if self._finalizing:
            return
        self._finalizing = True
        self.state.provider_confirmed = True

        # polling ends here; closing the QR later must not interrupt the booking update
        task = self.registry.get(self.intent_id)
        if task is asyncio.current_task():
            self.registry.release(self.intent_id)
        elif task is not None:
            self.registry.cancel(self.intent_id)
        self.ui.close_qr()

        if not self.gate_success_on_persist:
            # optimistic: the user sees success before the booking is updated
            self.ui.show_success(self.state)

        await self._persist()

        if self.gate_success_on_persist and self.state.persisted:
            self.ui.show_success(self.state)

    async def _persist(self) -> None:
        try:
            await self.api.update_booking(self.state.booking_id, {
                "paymentIntentId": self.intent_id,
                "paymentStatus": "paid",
            })
            self.state.persisted = True
        except Exception as e:
            # money has already moved at the provider; hand the user a reference instead of failing
            self.state.persist_error = describe_error(e)
            logger.error("payment %s succeeded but booking %s was not updated: %s",
                         self.intent_id, self.state.booking_id, self.state.persist_error)
            self.ui.alert(
                "Payment received",
                "Your payment went through but we could not update your booking. "
                f"Please contact support with reference {self.intent_id}.",
            )


class PaymentFlow:
    def __init__(self, api: EzRentApi, ui: PaymentUi, registry: PollRegistry | None = None,
                 open_url: Callable[[str], object] = webbrowser.open,
                 poll_interval: float = POLL_INTERVAL_SECONDS,
                 gate_success_on_persist: bool = False):
        self.api = api
        self.ui = ui
        self.registry = registry or PollRegistry()
        self.open_url = open_url
        self.poll_interval = poll_interval
        self.gate_success_on_persist = gate_success_on_persist

    async def pay_cash_on_delivery(self, booking_id: str, payload: dict) -> dict | None:
        self.ui.set_submitting(True)
        try:
            body = await self.api.update_booking(booking_id, {**payload, "paymentMethod": "Cash on Delivery"})
        except Exception as e:
            logger.warning("cash on delivery update for %s failed: %s", booking_id, e)
            self.ui.alert("Booking failed", describe_error(e))
            return None
        finally:
            self.ui.set_submitting(False)
        self.ui.show_request_sent()
        return body

    async def start_redirect_checkout(self, payload: dict) -> str | None:
        self.ui.set_submitting(True)
        try:
            checkout_url = await self.api.create_checkout(payload)
        except Exception as e:
            logger.warning("checkout session failed: %s", e)
            self.ui.alert("Payment failed", describe_error(e))
            return None
        finally:
            self.ui.set_submitting(False)
        # completion happens out-of-band at the provider
        self.open_url(checkout_url)
        return checkout_url

    async def start_qr_payment(self, booking_id: str, amount, description: str) -> QrPaymentSession | None:
        self.ui.set_submitting(True)
        try:
            payment = await self.api.create_qr_payment(amount, description, booking_id=booking_id)
        except Exception as e:
            logger.warning("QR payment creation failed: %s", e)
            self.ui.alert("Payment failed", describe_error(e))
            return None
        finally:
            self.ui.set_submitting(False)

        session = QrPaymentSession(
            self.api, self.ui, booking_id, payment, self.registry,
            interval=self.poll_interval, gate_success_on_persist=self.gate_success_on_persist,
        )
        session.open()
        return session

    def teardown(self) -> None:
        """Screen unmount: stop every poll this flow started."""
        self.registry.cancel_all()
