from typing import Any

from pydantic import BaseModel


class ApiResponse(BaseModel):
    message: str
    code: int
    data: Any | None = None


class CreateOrderRequest(BaseModel):
    amount: int | None = None
    meta: dict[str, Any] | None = None


class OrderLookupRequest(BaseModel):
    orderId: str | None = None


class PaymentLookupRequest(BaseModel):
    paymentId: str | None = None


class UpdateOrderRequest(BaseModel):
    orderId: str | None = None
    pmtRecID: str | int | None = None
