import logging
from functools import lru_cache
from typing import Any

import razorpay
from paybridge.core.config import get_settings
from paybridge.core.errors import UpstreamError

logger = logging.getLogger(__name__)

# notes copied forward when an order is stamped with its payment receipt id
ORDER_NOTE_KEYS = (
    "APPReqNo",
    "PtnNo",
    "SchDt",
    "FctMainCd",
    "FctCd",
    "SessionCd",
    "SlotNo",
)


@lru_cache
def get_razorpay_client() -> razorpay.Client:
    settings = get_settings()
    return razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))


class PaymentGateway:
    """Thin wrapper over the Razorpay SDK that turns SDK failures into UpstreamError."""

    def __init__(self, client: razorpay.Client, currency: str = "INR"):
        self.client = client
        self.currency = currency

    def _call(self, what: str, fn, *args) -> Any:
        try:
            return fn(*args)
        except Exception as exc:
            logger.exception(f"Razorpay {what} failed")
            raise UpstreamError("Payment gateway request failed") from exc

    def create_order(self, amount: int | None, notes: dict[str, Any] | None) -> dict:
        options = {"amount": amount, "currency": self.currency, "notes": notes or {}}
        return self._call("order create", self.client.order.create, options)

    def fetch_order(self, order_id: str) -> dict:
        return self._call("order fetch", self.client.order.fetch, order_id)

    def fetch_payment(self, payment_id: str) -> dict:
        return self._call("payment fetch", self.client.payment.fetch, payment_id)

    def update_order_notes(self, order_id: str, notes: dict[str, Any]) -> dict:
        return self._call("order edit", self.client.order.edit, order_id, {"notes": notes})


def receipt_notes(existing: dict[str, Any], pmt_rec_id: str) -> dict[str, Any]:
    """Notes for an order stamped with ``pmt_rec_id``; keys the order lacks are left out."""
    notes: dict[str, Any] = {"PmtRecID": pmt_rec_id}
    for key in ORDER_NOTE_KEYS:
        if existing.get(key) is not None:
            notes[key] = existing[key]
    return notes
