import hashlib
import logging
from dataclasses import dataclass, field

import pydantic
from paybridge.core import errors
from paybridge.db import crud
from paybridge.schemas.webhook import OUTCOMES, WebhookEvent
from paybridge.services import razorpay_verify
from paybridge.services.booking import BookingClient
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

REQUIRED_NOTES = ("APPReqNo", "PmtRecID")


@dataclass
class WebhookResult:
    event: str
    status: str
    payment_id: str | None = None
    calls: dict[str, bool] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status != crud.PARTIAL


def correlation_ids(event: WebhookEvent) -> tuple[str, str]:
    """Return (APPReqNo, PmtRecID) from the payment notes or raise ValidationError."""
    notes = event.notes
    missing = [key for key in REQUIRED_NOTES if notes.get(key) in (None, "")]
    if missing:
        raise errors.ValidationError(
            f"Webhook payload is missing required notes: {', '.join(missing)}"
        )
    return str(notes["APPReqNo"]), str(notes["PmtRecID"])


class WebhookProcessor:
    """Verifies a Razorpay callback and pushes the payment outcome to the booking backend."""

    def __init__(
        self,
        booking: BookingClient,
        secret: str,
        db: Session,
        dedupe: bool = False,
    ):
        self.booking = booking
        self.secret = secret
        self.db = db
        self.dedupe = dedupe

    async def handle(self, raw_body: bytes, signature: str | None) -> WebhookResult:
        try:
            razorpay_verify.verify(raw_body, signature, self.secret)
        except razorpay_verify.RazorpaySignatureError as exc:
            logger.error(f"Webhook verification failed: {exc}")
            raise errors.AuthenticityError(
                "Webhook Error: Signature verification failed"
            ) from exc

        try:
            event = WebhookEvent.model_validate_json(raw_body)
        except pydantic.ValidationError as exc:
            raise errors.ValidationError("Invalid webhook payload") from exc

        sha256 = hashlib.sha256(raw_body).hexdigest()
        logger.info(f"Webhook verified and received: {event.event} ({event.payment_id})")

        try:
            result = await self._dispatch(event)
        except Exception:
            crud.record_delivery(
                self.db, event.event, event.payment_id, sha256, crud.FAILED
            )
            raise
        crud.record_delivery(
            self.db, event.event, event.payment_id, sha256, result.status
        )
        return result

    async def _dispatch(self, event: WebhookEvent) -> WebhookResult:
        outcome = OUTCOMES.get(event.event)
        if outcome is None:
            logger.info(f"Ignoring webhook event {event.event}")
            return WebhookResult(event.event, crud.IGNORED, event.payment_id)

        appt_req_no, pmt_rec_id = correlation_ids(event)

        if self.dedupe and event.payment_id:
            if crud.find_processed(self.db, event.payment_id, event.event):
                logger.info(
                    f"Skipping duplicate delivery of {event.event} for {event.payment_id}"
                )
                return WebhookResult(event.event, crud.DUPLICATE, event.payment_id)

        logger.info(f"{event.event} for payment {event.payment_id}")

        payment_r = await self.booking.update_payment_status(outcome, pmt_rec_id)
        appointment_r = await self.booking.update_appointment(
            self.booking.appointment_payload(outcome, appt_req_no, pmt_rec_id)
        )

        calls = {
            "paymentUpdate": payment_r.is_success,
            "appointmentUpdate": appointment_r.is_success,
        }
        for name, response in (("payment", payment_r), ("appointment", appointment_r)):
            if not response.is_success:
                logger.warning(
                    f"Booking backend {name} update returned {response.status_code}"
                )

        status = crud.PROCESSED if all(calls.values()) else crud.PARTIAL
        return WebhookResult(event.event, status, event.payment_id, calls)
