from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"


class PaymentEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    order_id: str | None = None
    # Razorpay sends [] instead of {} when an order carries no notes
    notes: dict[str, Any] | list[Any] = Field(default_factory=dict)


class PaymentContainer(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity: PaymentEntity


class EventPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment: PaymentContainer | None = None


class WebhookEvent(BaseModel):
    """Razorpay webhook body. Unknown fields are ignored."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(..., description="Event type / name")
    payload: EventPayload = Field(default_factory=EventPayload)

    @property
    def payment_id(self) -> str | None:
        if self.payload.payment is None:
            return None
        return self.payload.payment.entity.id

    @property
    def notes(self) -> dict[str, Any]:
        if self.payload.payment is None:
            return {}
        notes = self.payload.payment.entity.notes
        return notes if isinstance(notes, dict) else {}


@dataclass(frozen=True)
class PaymentOutcome:
    success_flag: int
    status: str
    description: str
    appointment_status: int
    payment_done: int


OUTCOMES = {
    PAYMENT_CAPTURED: PaymentOutcome(
        success_flag=1,
        status="S",
        description="Successfully",
        appointment_status=4,
        payment_done=1,
    ),
    PAYMENT_FAILED: PaymentOutcome(
        success_flag=0,
        status="F",
        description="Failed",
        appointment_status=3,
        payment_done=0,
    ),
}


class AppointmentUpdatePayload(BaseModel):
    COCD: str
    LOCCD: int
    DIVCD: int
    ApptReqNo: str
    ReqStsCd: int = 1
    AptmSts: int
    PmtRecID: str
    IsPmtDone: int
